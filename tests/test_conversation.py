"""Tests for conversation history management."""

from chat.conversation import ConversationManager


def test_conversation_manager_initialization():
    manager = ConversationManager()
    assert manager.history == []


def test_add_messages():
    manager = ConversationManager()
    manager.add_user_message("A todo list")
    manager.add_assistant_message("Here it is.")
    assert manager.history == [
        {"role": "user", "content": "A todo list"},
        {"role": "assistant", "content": "Here it is."},
    ]


def test_empty_assistant_messages_are_dropped():
    manager = ConversationManager()
    manager.add_assistant_message("")
    manager.add_assistant_message("  \n\t")
    assert manager.history == []


def test_sanitized_history_collapses_unanswered_user_turns():
    manager = ConversationManager()
    manager.add_user_message("first try")
    manager.add_user_message("second try")
    manager.add_assistant_message("answer")
    manager.add_user_message("follow-up")
    assert manager.get_sanitized_history() == [
        {"role": "user", "content": "second try"},
        {"role": "assistant", "content": "answer"},
        {"role": "user", "content": "follow-up"},
    ]


def test_last_code_from_latest_answer_with_code():
    manager = ConversationManager()
    manager.add_user_message("a button")
    manager.add_assistant_message("Here:\n```jsx\n<button/>\n```")
    manager.add_user_message("thanks")
    manager.add_assistant_message("You're welcome!")
    assert manager.last_code() == "<button/>\n"


def test_clear_history():
    manager = ConversationManager()
    manager.add_user_message("x")
    manager.clear_history()
    assert manager.history == []
    assert manager.last_code() is None
