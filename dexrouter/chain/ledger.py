"""In-memory execution host.

The Chain holds ERC20-style balances, allowances and supplies, a block
timestamp, and every deployed venue contract. `transaction()` gives the
all-or-nothing semantics the engine relies on: if the body raises, the
ledger and all contract state are restored to their values at entry.
"""

from __future__ import annotations

import copy
import itertools
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, TypeVar

import structlog

from dexrouter.models.types import normalize_address

from .errors import ContractNotFound, Expired, InsufficientAllowance, InsufficientBalance

logger = structlog.get_logger()

ContractT = TypeVar("ContractT", bound="Contract")


class Contract:
    """Base class for contracts deployed on a Chain."""

    def __init__(self, chain: Chain, address: str | None = None) -> None:
        self.chain = chain
        self.address = normalize_address(address) if address else chain.new_address()

    def pull(self, token: str, owner: str, amount: int, to: str | None = None) -> None:
        """transferFrom owner into this contract (or `to`), spending our allowance."""
        self.chain.transfer_from(token, self.address, owner, to or self.address, amount)

    def push(self, token: str, to: str, amount: int) -> None:
        self.chain.transfer(token, self.address, to, amount)

    def check_deadline(self, deadline: int) -> None:
        self.chain.require_deadline(deadline)


class Chain:
    """Ledger plus contract registry with snapshot/rollback transactions."""

    def __init__(self, timestamp: int = 1_700_000_000) -> None:
        self.timestamp = timestamp
        self._balances: dict[str, dict[str, int]] = {}
        self._allowances: dict[tuple[str, str, str], int] = {}
        self._supply: dict[str, int] = {}
        self._contracts: dict[str, Contract] = {}
        self._address_seq = itertools.count(0xC0DE0000)
        self._tx_depth = 0

    # --- Contracts ---

    def new_address(self) -> str:
        return f"0x{next(self._address_seq):040x}"

    def deploy(self, contract: ContractT) -> ContractT:
        self._contracts[contract.address] = contract
        return contract

    def contract(self, address: str) -> Any:
        """Resolve a deployed contract.

        Raises:
            ContractNotFound: If nothing is deployed at the address
        """
        try:
            return self._contracts[normalize_address(address)]
        except KeyError as err:
            raise ContractNotFound(f"No contract at {address}") from err

    # --- Time ---

    def advance(self, seconds: int) -> None:
        self.timestamp += seconds

    def require_deadline(self, deadline: int) -> None:
        """Raises Expired once the block timestamp is past the deadline."""
        if self.timestamp > deadline:
            raise Expired(f"Deadline {deadline} passed at {self.timestamp}")

    # --- Tokens ---

    def balance_of(self, token: str, holder: str) -> int:
        return self._balances.get(normalize_address(token), {}).get(normalize_address(holder), 0)

    def total_supply(self, token: str) -> int:
        return self._supply.get(normalize_address(token), 0)

    def allowance(self, token: str, owner: str, spender: str) -> int:
        key = (normalize_address(token), normalize_address(owner), normalize_address(spender))
        return self._allowances.get(key, 0)

    def approve(self, token: str, owner: str, spender: str, amount: int) -> None:
        key = (normalize_address(token), normalize_address(owner), normalize_address(spender))
        self._allowances[key] = amount

    def mint(self, token: str, to: str, amount: int) -> None:
        token, to = normalize_address(token), normalize_address(to)
        holders = self._balances.setdefault(token, {})
        holders[to] = holders.get(to, 0) + amount
        self._supply[token] = self._supply.get(token, 0) + amount

    def burn(self, token: str, holder: str, amount: int) -> None:
        token, holder = normalize_address(token), normalize_address(holder)
        self._debit(token, holder, amount)
        self._supply[token] -= amount

    def transfer(self, token: str, src: str, dst: str, amount: int) -> None:
        """Move tokens between holders.

        Raises:
            InsufficientBalance: If src holds less than amount
        """
        if amount == 0:
            return
        token, src, dst = normalize_address(token), normalize_address(src), normalize_address(dst)
        self._debit(token, src, amount)
        holders = self._balances.setdefault(token, {})
        holders[dst] = holders.get(dst, 0) + amount

    def transfer_from(self, token: str, spender: str, src: str, dst: str, amount: int) -> None:
        """Move tokens on behalf of src, consuming spender's allowance.

        Raises:
            InsufficientAllowance: If spender may not move amount
            InsufficientBalance: If src holds less than amount
        """
        if amount == 0:
            return
        if normalize_address(spender) != normalize_address(src):
            allowed = self.allowance(token, src, spender)
            if allowed < amount:
                raise InsufficientAllowance(
                    f"{spender} may move {allowed} of {token} from {src}, needs {amount}"
                )
            self.approve(token, src, spender, allowed - amount)
        self.transfer(token, src, dst, amount)

    def _debit(self, token: str, holder: str, amount: int) -> None:
        holders = self._balances.setdefault(token, {})
        balance = holders.get(holder, 0)
        if balance < amount:
            raise InsufficientBalance(f"{holder} holds {balance} of {token}, needs {amount}")
        holders[holder] = balance - amount

    # --- Atomicity ---

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Run a block atomically; nested blocks join the outermost one."""
        if self._tx_depth > 0:
            self._tx_depth += 1
            try:
                yield
            finally:
                self._tx_depth -= 1
            return

        snapshot = self._snapshot()
        self._tx_depth = 1
        try:
            yield
        except BaseException:
            self._restore(snapshot)
            logger.debug("transaction_reverted", timestamp=self.timestamp)
            raise
        finally:
            self._tx_depth = 0

    def _snapshot(self) -> dict[str, Any]:
        # Copies every deployed contract, so each top-level call costs time
        # linear in the number of deployments
        # Contracts keep references to the chain and to each other; those stay shared
        memo: dict[int, Any] = {id(self): self}
        memo.update({id(c): c for c in self._contracts.values()})
        return {
            "balances": copy.deepcopy(self._balances),
            "allowances": dict(self._allowances),
            "supply": dict(self._supply),
            "contracts": {
                address: copy.deepcopy(vars(contract), memo)
                for address, contract in self._contracts.items()
            },
        }

    def _restore(self, snapshot: dict[str, Any]) -> None:
        self._balances = snapshot["balances"]
        self._allowances = snapshot["allowances"]
        self._supply = snapshot["supply"]
        for address in list(self._contracts):
            if address not in snapshot["contracts"]:
                del self._contracts[address]
        for address, state in snapshot["contracts"].items():
            contract = self._contracts[address]
            vars(contract).clear()
            vars(contract).update(state)


__all__ = ["Chain", "Contract"]
