"""Tests for boundary input parsing."""

from decimal import Decimal

import pytest

from bill_split.exceptions import InvalidInputError, InvalidPolicyError
from bill_split.inputs import load_json, loads_json, parse_balances, parse_split_request
from bill_split.models import ItemBasedPolicy, PercentagePolicy, SplitType, build_policy


class TestParseSplitRequest:
    """Split requests accept both snake_case and camelCase keys."""

    def test_camel_case_request(self):
        request = parse_split_request(
            {
                "totalAmount": "250",
                "splitType": "percentage",
                "participants": [{"_id": "u1", "name": "Ann"}, "u2"],
                "breakdown": [
                    {"participantId": "u1", "percentage": 60},
                    {"participantId": "u2", "percentage": 40},
                ],
            }
        )

        assert request.total == Decimal("250")
        assert request.split_type == SplitType.PERCENTAGE
        assert [p.id for p in request.participants] == ["u1", "u2"]
        assert request.participants[0].name == "Ann"

        policy = request.policy()
        assert isinstance(policy, PercentagePolicy)
        assert [s.percentage for s in policy.shares] == [Decimal("60"), Decimal("40")]

    def test_defaults_to_equal(self):
        request = parse_split_request({"total": "10", "participants": ["a", "b"]})

        assert request.split_type == SplitType.EQUAL
        assert request.policy().split_type == "equal"

    def test_item_hints(self):
        request = parse_split_request(
            {
                "split_type": "item_based",
                "participants": ["P"],
                "hints": [
                    {
                        "participant_id": "P",
                        "items": [{"itemName": "Pizza", "itemPrice": "10", "quantity": 2}],
                    }
                ],
            }
        )

        policy = request.policy()
        assert isinstance(policy, ItemBasedPolicy)
        assert policy.assignments[0].items[0].line_total == Decimal("20")
        assert request.total is None

    def test_missing_participants(self):
        with pytest.raises(InvalidInputError, match="Invalid split request"):
            parse_split_request({"total": "10"})

    def test_unknown_split_type(self):
        with pytest.raises(InvalidInputError):
            parse_split_request({"split_type": "shares", "participants": ["a"]})


class TestBuildPolicy:
    """Policy construction from loose hints."""

    def test_unknown_split_type(self):
        with pytest.raises(InvalidPolicyError, match="Unknown split type"):
            build_policy("shares")

    def test_malformed_hints(self):
        with pytest.raises(InvalidPolicyError, match="Invalid custom split hints"):
            build_policy("custom", [{"participant_id": "A"}])

    def test_mapping_hints(self):
        policy = build_policy(
            "custom", {"shares": [{"participant_id": "A", "amount": "5"}]}
        )

        assert policy.shares[0].amount == Decimal("5")


class TestParseBalances:
    """Balances come as a mapping, net rows or ledger rows."""

    def test_mapping_keeps_order(self):
        balances = parse_balances({"C": "20", "A": "-50", "B": "30"})

        assert [(b.participant_id, b.net_balance) for b in balances] == [
            ("C", Decimal("20")),
            ("A", Decimal("-50")),
            ("B", Decimal("30")),
        ]

    def test_net_balance_rows(self):
        balances = parse_balances([{"participant_id": "A", "net_balance": "-1.50"}])

        assert balances[0].net_balance == Decimal("-1.50")

    def test_ledger_rows(self):
        balances = parse_balances(
            [
                {"participant_id": "A", "total_owed": "33.34", "total_paid": "100"},
                {"participant_id": "B", "total_owed": "33.33"},
            ]
        )

        assert [(b.participant_id, b.net_balance) for b in balances] == [
            ("A", Decimal("66.66")),
            ("B", Decimal("-33.33")),
        ]

    def test_bad_row(self):
        with pytest.raises(InvalidInputError, match="Invalid balances"):
            parse_balances([{"net_balance": "5"}])

    def test_wrong_shape(self):
        with pytest.raises(InvalidInputError, match="mapping or a list"):
            parse_balances("A owes B")


class TestJson:
    """JSON decoding keeps amounts exact."""

    def test_floats_decode_as_decimal(self):
        assert loads_json('{"A": 0.1}') == {"A": Decimal("0.1")}

    def test_invalid_json(self):
        with pytest.raises(InvalidInputError, match="Invalid JSON"):
            loads_json("{")

    def test_load_file(self, tmp_path):
        path = tmp_path / "balances.json"
        path.write_text('{"A": -12.34, "B": 12.34}')

        assert load_json(path) == {"A": Decimal("-12.34"), "B": Decimal("12.34")}

    def test_load_invalid_file(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("not json")

        with pytest.raises(InvalidInputError, match="not valid JSON"):
            load_json(path)
