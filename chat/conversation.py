"""Conversation history management."""

from typing import List, Optional

from segmenter import parse_content


class ConversationManager:
    """Keeps the prompt/answer history sent back to the model on follow-ups.

    Assistant turns are stored as the raw answer (manifest and fences included)
    so the model sees its previous component verbatim when asked to change it.
    """

    def __init__(self):
        self.history: List[dict] = []

    def add_user_message(self, content: str) -> None:
        self.history.append({"role": "user", "content": content})

    def add_assistant_message(self, content: str) -> None:
        """Add an assistant answer; empty answers are not kept."""
        if content and content.strip():
            self.history.append({"role": "assistant", "content": content})

    def clear_history(self) -> None:
        self.history = []

    def get_sanitized_history(self) -> List[dict]:
        """History without empty assistant answers; of consecutive user turns only the last is kept."""
        cleaned = [
            msg for msg in self.history
            if not (msg["role"] == "assistant" and not (msg.get("content") or "").strip())
        ]
        # Providers reject two consecutive user turns
        result: List[dict] = []
        for msg in cleaned:
            if result and msg["role"] == "user" and result[-1]["role"] == "user":
                result[-1] = msg
            else:
                result.append(msg)
        return result

    def last_code(self) -> Optional[str]:
        """Code of the most recent assistant answer that contains any."""
        for msg in reversed(self.history):
            if msg["role"] != "assistant":
                continue
            code = parse_content(msg["content"]).code
            if code is not None:
                return code.content
        return None
