from fastapi import FastAPI

from .routes.appointments import router as appointments_router
from .routes.health import router as health_router


app = FastAPI(title="Atlas Agenda")

app.include_router(health_router)
app.include_router(appointments_router)


@app.get("/")
async def root():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("atlas_agenda.main:app", host="0.0.0.0", port=8000)
