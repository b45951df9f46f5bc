"""Unit tests for system prompt assembly."""

from datetime import datetime

import pytest_check as check

from second_brain.chat.prompt import (
    CONTEXT_HEADER,
    EXCERPT_SEPARATOR,
    NO_CONTEXT_NOTICE,
    SYSTEM_TEMPLATE,
    assemble_request,
    build_system_instruction,
    format_excerpt,
)
from second_brain.models.schemas import ConversationTurn, KnowledgeExcerpt, Modality


def excerpt(title: str, text: str, modality=Modality.TEXT, captured_at=None) -> KnowledgeExcerpt:
    return KnowledgeExcerpt(
        source_id=title.lower(),
        title=title,
        modality=modality,
        captured_at=captured_at,
        excerpt_text=text,
    )


class TestFormatExcerpt:
    def test_header_and_body(self) -> None:
        rendered = format_excerpt(
            excerpt("Q3 Plan", "Ship the beta", Modality.DOCUMENT, datetime(2024, 3, 5, 14, 30))
        )

        assert rendered == "[DOCUMENT - Q3 Plan - 3/5/2024]\nShip the beta"

    def test_unknown_date(self) -> None:
        assert format_excerpt(excerpt("Clip", "hello", Modality.AUDIO)).startswith(
            "[AUDIO - Clip - Unknown date]\n"
        )


class TestBuildSystemInstruction:
    def test_no_excerpts_uses_notice(self) -> None:
        instruction = build_system_instruction([])

        check.is_true(instruction.startswith(SYSTEM_TEMPLATE))
        check.is_true(instruction.endswith(NO_CONTEXT_NOTICE))
        check.is_not_in(CONTEXT_HEADER, instruction)

    def test_excerpts_joined_in_order(self) -> None:
        first = excerpt("First", "one", captured_at=datetime(2024, 1, 2))
        second = excerpt("Second", "two", Modality.WEB, datetime(2024, 12, 31))

        instruction = build_system_instruction([first, second])

        expected_context = (
            "[TEXT - First - 1/2/2024]\none"
            + EXCERPT_SEPARATOR
            + "[WEB - Second - 12/31/2024]\ntwo"
        )
        assert instruction == f"{SYSTEM_TEMPLATE}\n\n\n\n{CONTEXT_HEADER}\n{expected_context}"
        assert NO_CONTEXT_NOTICE not in instruction

    def test_blank_lines_before_notice(self) -> None:
        assert build_system_instruction([]) == f"{SYSTEM_TEMPLATE}\n\n\n\n{NO_CONTEXT_NOTICE}"

    def test_template_names_second_brain(self) -> None:
        assert '"Second Brain"' in build_system_instruction([])


class TestAssembleRequest:
    def test_turns_preserved_and_system_first(self) -> None:
        turns = [
            ConversationTurn(role="user", content="hi"),
            ConversationTurn(role="assistant", content="hello"),
            ConversationTurn(role="user", content="what's new?"),
        ]

        request = assemble_request([], turns)
        messages = request.to_messages()

        assert request.stream is True
        assert request.turns == tuple(turns)
        assert messages[0] == {"role": "system", "content": request.system_instruction}
        assert messages[1:] == [
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "hello"},
            {"role": "user", "content": "what's new?"},
        ]

    def test_caller_system_turns_are_kept(self) -> None:
        turns = [
            ConversationTurn(role="system", content="answer in French"),
            ConversationTurn(role="user", content="bonjour"),
        ]

        messages = assemble_request([], turns).to_messages()

        assert [m["role"] for m in messages] == ["system", "system", "user"]
        assert messages[1]["content"] == "answer in French"
