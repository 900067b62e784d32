"""Enumeration types for the baker payout engine."""

from enum import Enum


class TezosNetwork(str, Enum):
    """Tezos network served by the indexer."""

    MAINNET = "mainnet"
    GHOSTNET = "ghostnet"


class AccountType(str, Enum):
    """Delegator account kind as reported by TzKT."""

    USER = "user"
    CONTRACT = "contract"
