"""The ledger client boundary.

This package never opens connections itself. Callers pass in any object with
these two coroutines; connection handling, retries, auth and timeouts all
belong to that object.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, runtime_checkable


@runtime_checkable
class LedgerTransport(Protocol):
    async def submit_and_wait_for_transaction_tree(self, request: Mapping[str, Any]) -> Mapping[str, Any]:
        """Submit one command and wait for its transaction tree.

        ``request`` is the camelCase JSON body of a submit-and-wait call.
        Implementations raise on rejection; OcpNetworkError is the expected
        type for connection-level failures.
        """
        ...

    async def get_events_by_contract_id(self, contract_id: str) -> Optional[Mapping[str, Any]]:
        """Return the events of a contract, or None if it is unknown.

        The result carries ``created.createdEvent.createArgument`` for an
        active or archived contract.
        """
        ...
