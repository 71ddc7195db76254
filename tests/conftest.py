"""Pytest configuration and shared fixtures."""

from typing import Any, Mapping, Optional

import pytest

from ocp_ledger import CapTableBatchParams


class FakeLedger:
    """In-memory stand-in for the ledger client.

    ``response`` is returned from every submission unless ``error`` is set,
    in which case it is raised. Submitted request bodies are recorded.
    """

    def __init__(
        self,
        response: Optional[Mapping[str, Any]] = None,
        error: Optional[BaseException] = None,
        contracts: Optional[Mapping[str, Mapping[str, Any]]] = None,
    ) -> None:
        self.response = response
        self.error = error
        self.contracts = dict(contracts or {})
        self.requests: list[Mapping[str, Any]] = []

    async def submit_and_wait_for_transaction_tree(self, request: Mapping[str, Any]) -> Mapping[str, Any]:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        assert self.response is not None
        return self.response

    async def get_events_by_contract_id(self, contract_id: str) -> Optional[Mapping[str, Any]]:
        create_argument = self.contracts.get(contract_id)
        if create_argument is None:
            return None
        return {"created": {"createdEvent": {"contractId": contract_id, "createArgument": create_argument}}}


def exercised_response(
    exercise_result: Mapping[str, Any],
    update_id: str = "update-1",
    choice: str = "UpdateCapTable",
) -> dict[str, Any]:
    """A submit response holding one exercised event for ``choice``."""
    return {
        "transactionTree": {
            "updateId": update_id,
            "eventsById": {
                "0": {
                    "ExercisedTreeEvent": {
                        "value": {
                            "contractId": "cap-table-1",
                            "templateId": "pkg:Fairmint.OpenCapTable.CapTable:CapTable",
                            "choice": choice,
                            "exerciseResult": dict(exercise_result),
                            "consuming": True,
                            "nodeId": 0,
                        }
                    }
                },
                "1": {
                    "CreatedTreeEvent": {
                        "value": {
                            "contractId": "cap-table-2",
                            "templateId": "pkg:Fairmint.OpenCapTable.CapTable:CapTable",
                            "createArgument": {},
                            "nodeId": 1,
                        }
                    }
                },
            },
        }
    }


@pytest.fixture
def params() -> CapTableBatchParams:
    return CapTableBatchParams(
        cap_table_contract_id="cap-table-1",
        act_as=("issuer::party",),
    )


@pytest.fixture
def stakeholder() -> dict[str, Any]:
    return {
        "id": "sh-1",
        "name": {"legal_name": "Jane Doe"},
        "stakeholder_type": "INDIVIDUAL",
    }


@pytest.fixture
def stock_class() -> dict[str, Any]:
    return {
        "id": "sc-1",
        "name": "Common",
        "class_type": "COMMON",
        "default_id_prefix": "CS-",
        "initial_shares_authorized": "10000000",
        "votes_per_share": "1",
        "seniority": "1",
    }


@pytest.fixture
def stock_plan() -> dict[str, Any]:
    return {
        "id": "sp-1",
        "plan_name": "2024 Equity Incentive Plan",
        "initial_shares_reserved": "1000000",
        "stock_class_ids": ["sc-1"],
    }


@pytest.fixture
def stock_issuance() -> dict[str, Any]:
    return {
        "id": "si-1",
        "date": "2024-01-15",
        "security_id": "sec-1",
        "custom_id": "CS-1",
        "stakeholder_id": "sh-1",
        "stock_class_id": "sc-1",
        "share_price": {"amount": "0.001", "currency": "USD"},
        "quantity": "1000000",
    }


@pytest.fixture
def issuer() -> dict[str, Any]:
    return {
        "id": "issuer-1",
        "legal_name": "Acme Corp",
        "country_of_formation": "US",
        "formation_date": "2020-03-01",
    }
