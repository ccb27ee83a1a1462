import unittest

from conversation_extractor.models import UsageRecord
from conversation_extractor.parsers.usage import UsageAccumulator, merge_usage


class UsageMergeTests(unittest.TestCase):
    def test_absent_incoming_returns_accumulator_unchanged(self) -> None:
        acc = UsageRecord(input=4)
        self.assertIs(merge_usage(acc, None), acc)

    def test_fields_are_summed_with_missing_values_as_zero(self) -> None:
        merged = merge_usage(
            UsageRecord(input=1, cacheRead=2),
            {"input": 10, "output": 3, "cacheWrite": 7, "cost": {"input": 0.1, "total": 0.2}},
        )

        self.assertEqual(merged.input, 11)
        self.assertEqual(merged.output, 3)
        self.assertEqual(merged.cacheRead, 2)
        self.assertEqual(merged.cacheWrite, 7)
        self.assertEqual(merged.totalTokens, 0)
        self.assertAlmostEqual(merged.cost.input, 0.1)
        self.assertAlmostEqual(merged.cost.total, 0.2)
        self.assertEqual(merged.cost.output, 0)

    def test_merge_is_commutative(self) -> None:
        a = {"input": 5, "totalTokens": 9, "cost": {"output": 0.25}}
        b = {"output": 2, "cacheRead": 11, "cost": {"total": 1.5, "output": 0.5}}

        ab = merge_usage(merge_usage(UsageRecord(), a), b)
        ba = merge_usage(merge_usage(UsageRecord(), b), a)

        self.assertEqual(ab.model_dump(), ba.model_dump())

    def test_non_numeric_values_count_as_zero(self) -> None:
        merged = merge_usage(UsageRecord(), {"input": "12", "output": True, "cost": "free"})
        self.assertEqual(merged.input, 0)
        self.assertEqual(merged.output, 0)
        self.assertEqual(merged.cost.total, 0)


class UsageAccumulatorTests(unittest.TestCase):
    def test_no_merges_collapses_to_none(self) -> None:
        acc = UsageAccumulator()
        acc.add(None)
        self.assertIsNone(acc.result())

    def test_merged_record_is_kept(self) -> None:
        acc = UsageAccumulator()
        acc.add({"input": 1})
        acc.add({"input": 2, "output": 4})
        result = acc.result()
        self.assertIsNotNone(result)
        assert result is not None
        self.assertEqual(result.input, 3)
        self.assertEqual(result.output, 4)


if __name__ == "__main__":
    unittest.main()
