import json
import unittest
from pathlib import Path
from unittest.mock import patch

from conversation_extractor import config
from conversation_extractor.assemblers import (
    FullAssembler,
    IncrementalAssembler,
    OptimizedAssembler,
    available_modes,
    get_assembler,
    truncate,
)
from conversation_extractor.models import SessionMeta, ToolCall, Turn, UsageCost, UsageRecord, dump_payload


def _meta() -> SessionMeta:
    return SessionMeta(agentId="main", sessionId="s-1", sessionKey="agent:main:matrix:room", channel="matrix")


def _turns() -> list[Turn]:
    return [
        Turn(
            index=0,
            timestamp="2026-03-01T10:00:00Z",
            model="model-a",
            usage=UsageRecord(input=10, output=2, cost=UsageCost(total=0.5)),
            userMessage="u" * 650,
            thinking="t" * 450,
            toolCalls=[
                ToolCall(id="t1", name="read", input={"path": "/a", "content": "x" * 300}, result="r" * 320, isError=False),
                ToolCall(id=None, name="exec", input={}),
            ],
            response="short answer",
        ),
        Turn(
            index=1,
            userMessage="again",
            usage=UsageRecord(cost=UsageCost(total=0.25)),
        ),
    ]


class TruncateTests(unittest.TestCase):
    def test_within_budget_is_identity(self) -> None:
        text = "x" * 10
        self.assertIs(truncate(text, 10), text)
        self.assertEqual(truncate("abc", 600), "abc")

    def test_over_budget_keeps_prefix_and_counts_omitted(self) -> None:
        self.assertEqual(truncate("abcdefghij", 4), "abcd… [+6]")

    def test_empty_and_none_pass_through(self) -> None:
        self.assertIsNone(truncate(None, 5))
        self.assertEqual(truncate("", 5), "")


class FullAssemblerTests(unittest.TestCase):
    def test_envelope_stats_and_untruncated_turns(self) -> None:
        docs = FullAssembler().assemble(_meta(), _turns(), entry_count=17)
        self.assertEqual(len(docs), 1)
        doc = dump_payload(docs[0])

        self.assertEqual(doc["schema"], "openclaw-conversation-v1")
        self.assertTrue(doc["extractedAt"].endswith("Z"))
        self.assertEqual(doc["session"]["channel"], "matrix")
        self.assertEqual(
            doc["stats"],
            {"totalEntries": 17, "turns": 2, "toolCallCount": 2, "thinkingTurnCount": 1, "totalCost": 0.75},
        )
        first = doc["turns"][0]
        self.assertEqual(len(first["userMessage"]), 650)
        self.assertEqual(first["toolCalls"][0]["input"]["content"], "x" * 300)
        self.assertEqual(first["toolCalls"][1], {"id": None, "name": "exec", "input": {}, "result": None, "isError": None})
        self.assertEqual(doc["turns"][1]["thinking"], None)
        self.assertEqual(doc["turns"][1]["response"], None)

    def test_output_is_json_serializable(self) -> None:
        doc = dump_payload(FullAssembler().assemble(_meta(), _turns(), entry_count=3)[0])
        self.assertIn('"schema": "openclaw-conversation-v1"', json.dumps(doc))


class OptimizedAssemblerTests(unittest.TestCase):
    def test_text_is_truncated_to_budgets(self) -> None:
        doc = dump_payload(OptimizedAssembler().assemble(_meta(), _turns(), entry_count=5)[0])
        first = doc["turns"][0]

        self.assertEqual(first["userMessage"], "u" * 600 + "… [+50]")
        self.assertEqual(first["thinking"], "t" * 400 + "… [+50]")
        self.assertEqual(first["response"], "short answer")
        self.assertEqual(doc["stats"]["turns"], 2)

    def test_tool_calls_are_reduced_to_previews(self) -> None:
        doc = dump_payload(OptimizedAssembler().assemble(_meta(), _turns(), entry_count=5)[0])
        read, exec_call = doc["turns"][0]["toolCalls"]

        self.assertEqual(set(read), {"name", "inputKeys", "inputPreview", "resultPreview", "isError"})
        self.assertEqual(read["inputKeys"], ["path", "content"])
        self.assertTrue(read["inputPreview"].startswith('{"path":"/a","content":"xxx'))
        self.assertTrue(read["inputPreview"].endswith("]"))
        self.assertEqual(read["resultPreview"], "r" * 300 + "… [+20]")
        self.assertFalse(read["isError"])
        self.assertEqual(exec_call["inputPreview"], "{}")
        self.assertIsNone(exec_call["resultPreview"])

    def test_custom_budgets(self) -> None:
        assembler = OptimizedAssembler(response_budget=5)
        preview = assembler.preview_turn(_turns()[0])
        self.assertEqual(preview.response, "short… [+7]")


class IncrementalAssemblerTests(unittest.TestCase):
    def test_one_document_per_turn(self) -> None:
        docs = [dump_payload(d) for d in IncrementalAssembler().assemble(_meta(), _turns(), entry_count=5)]

        self.assertEqual(len(docs), 2)
        self.assertEqual({d["schema"] for d in docs}, {"openclaw-turn-v1"})
        self.assertEqual([d["turn"]["index"] for d in docs], [0, 1])
        self.assertEqual(len(docs[0]["turn"]["userMessage"]), 650)
        self.assertEqual(docs[0]["session"]["sessionId"], "s-1")
        self.assertNotIn("stats", docs[0])


class AssemblerRegistryTests(unittest.TestCase):
    def test_modes(self) -> None:
        self.assertEqual(available_modes(), ["full", "incremental", "optimized"])
        self.assertIsInstance(get_assembler("FULL"), FullAssembler)
        self.assertTrue(get_assembler("incremental").line_format)

    def test_configured_mode_is_default(self) -> None:
        with patch.object(config, "EXTRACTOR_MODE", "incremental"):
            self.assertIsInstance(get_assembler(), IncrementalAssembler)

    def test_unknown_mode_raises(self) -> None:
        with self.assertRaises(ValueError):
            get_assembler("verbose")

    def test_output_paths_follow_config(self) -> None:
        with patch.object(config, "LOG_FILE", Path("/tmp/x.log")), patch.object(config, "JSONL_FILE", Path("/tmp/x.jsonl")):
            self.assertEqual(FullAssembler().output_path(), Path("/tmp/x.log"))
            self.assertEqual(OptimizedAssembler().output_path(), Path("/tmp/x.log"))
            self.assertEqual(IncrementalAssembler().output_path(), Path("/tmp/x.jsonl"))


if __name__ == "__main__":
    unittest.main()
