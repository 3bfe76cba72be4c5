import unittest
from datetime import datetime

from fintrack.models import (
    Bill,
    Income,
    Transaction,
    apply_patch,
    normalize_transaction_type,
    to_payload,
)


class ApplyPatchTests(unittest.TestCase):
    def setUp(self) -> None:
        self.bill = Bill(
            owner_id=1,
            name="Electricity",
            amount="95.00",
            due_date="2024-05-10",
            category="Bills & Utilities",
            icon="bolt",
            color="yellow",
            id=3,
        )

    def test_absent_fields_are_left_unchanged(self) -> None:
        patched = apply_patch(self.bill, {"amount": "110.00"})

        self.assertEqual(patched.amount, "110.00")
        self.assertEqual(patched.name, "Electricity")
        self.assertEqual(patched.icon, "bolt")

    def test_explicit_none_clears_optional_field(self) -> None:
        patched = apply_patch(self.bill, {"icon": None})

        self.assertIsNone(patched.icon)
        self.assertEqual(patched.color, "yellow")

    def test_empty_patch_returns_same_record(self) -> None:
        self.assertIs(apply_patch(self.bill, {}), self.bill)

    def test_rejects_clearing_required_field(self) -> None:
        with self.assertRaises(ValueError):
            apply_patch(self.bill, {"name": None})

    def test_rejects_unknown_and_identity_fields(self) -> None:
        for field_name in ("nickname", "id", "owner_id"):
            with self.subTest(field_name=field_name):
                with self.assertRaises(ValueError):
                    apply_patch(self.bill, {field_name: 9})

    def test_income_active_flag_can_be_toggled(self) -> None:
        income = Income(owner_id=1, source="Salary", amount="5800")

        self.assertFalse(apply_patch(income, {"is_active": False}).is_active)


class TransactionTypeTests(unittest.TestCase):
    def test_normalizes_known_types(self) -> None:
        self.assertEqual(normalize_transaction_type(" Income "), "income")
        self.assertEqual(normalize_transaction_type("EXPENSE"), "expense")

    def test_rejects_unknown_type(self) -> None:
        with self.assertRaises(ValueError):
            normalize_transaction_type("transfer")


class PayloadTests(unittest.TestCase):
    def test_renders_camel_case_keys(self) -> None:
        txn = Transaction(
            owner_id=4,
            amount="85.50",
            description="Cafe Mocha",
            type="expense",
            date="2024-05-01",
            payment_method="card",
            created_at=datetime(2024, 5, 1, 9, 30),
            id=12,
        )

        payload = to_payload(txn)

        self.assertEqual(payload["userId"], 4)
        self.assertEqual(payload["paymentMethod"], "card")
        self.assertEqual(payload["createdAt"], "2024-05-01T09:30:00")
        self.assertIn("recurringGroupKey", payload)
        self.assertNotIn("owner_id", payload)


if __name__ == "__main__":
    unittest.main()
