from atlas_agenda.services.prompt import MAX_INPUT_CHARS, SYSTEM_PROMPT, build_messages, truncate_user_text


def test_long_input_keeps_first_2000_chars():
    text = "x" * MAX_INPUT_CHARS + "y" * 50
    assert MAX_INPUT_CHARS == 2000
    assert truncate_user_text(text) == "x" * 2000


def test_short_input_is_untouched():
    assert truncate_user_text("موعد عند الطبيب غداً") == "موعد عند الطبيب غداً"


def test_none_becomes_empty():
    assert truncate_user_text(None) == ""


def test_messages_are_system_then_user():
    messages = build_messages("a" * 2100)
    assert [m["role"] for m in messages] == ["system", "user"]
    assert messages[0]["content"] == SYSTEM_PROMPT
    assert len(messages[1]["content"]) == 2000


def test_prompt_fixes_output_contract():
    assert '"appointments"' in SYSTEM_PROMPT
    assert '{"appointments": []}' in SYSTEM_PROMPT
    for field in ("type", "end_time", "actions_before", "actions_after", "recurrence", "reminder_minutes_before", "notes"):
        assert f'"{field}"' in SYSTEM_PROMPT
