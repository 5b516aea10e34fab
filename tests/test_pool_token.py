"""
Pool token stand-in: balances, allowances, transfers.
"""

import pytest

from votingmachine.constants import ZERO_ADDRESS
from votingmachine.tokens import (
    ApprovalEvent,
    InsufficientAllowanceError,
    InsufficientBalanceError,
    PoolToken,
    StakeToken,
    TokenError,
    TransferEvent,
)

ALICE = "0xALICE"
BOB = "0xBOB"
SPENDER = "0xSPENDER"


def make_token(supply=1_000, holder=ALICE) -> PoolToken:
    token = PoolToken("Prime Balancer Pool Token", "BPOOL", "0xBPOOL")
    if supply:
        token.mint(holder, supply)
    return token


class TestPoolTokenDeploy:

    def test_deploy_basic(self):
        t = make_token()
        assert t.name == "Prime Balancer Pool Token"
        assert t.symbol == "BPOOL"
        assert t.decimals == 18
        assert t.total_supply == 1_000
        assert t.balance_of(ALICE) == 1_000

    def test_empty_name_raises(self):
        with pytest.raises(TokenError, match="name"):
            PoolToken("", "BPOOL", "0xBPOOL")

    def test_empty_symbol_raises(self):
        with pytest.raises(TokenError, match="symbol"):
            PoolToken("Pool", "", "0xBPOOL")

    def test_invalid_decimals_raises(self):
        with pytest.raises(TokenError, match="Decimals"):
            PoolToken("Pool", "BPOOL", "0xBPOOL", decimals=19)

    def test_satisfies_stake_token_interface(self):
        assert isinstance(make_token(), StakeToken)

    def test_to_dict(self):
        d = make_token().to_dict()
        assert d["symbol"] == "BPOOL"
        assert d["totalSupply"] == "1000"
        assert d["holders"] == 1


class TestPoolTokenMint:

    def test_mint_increases_supply(self):
        t = make_token()
        event = t.mint(BOB, 500)
        assert t.total_supply == 1_500
        assert t.balance_of(BOB) == 500
        assert isinstance(event, TransferEvent)
        assert event.sender == ZERO_ADDRESS

    def test_mint_to_zero_address_raises(self):
        with pytest.raises(TokenError, match="zero address"):
            make_token().mint(ZERO_ADDRESS, 1)

    def test_mint_zero_raises(self):
        with pytest.raises(TokenError):
            make_token().mint(BOB, 0)


class TestPoolTokenTransfer:

    def test_transfer(self):
        t = make_token()
        t.transfer(ALICE, BOB, 400)
        assert t.balance_of(ALICE) == 600
        assert t.balance_of(BOB) == 400
        assert t.total_supply == 1_000

    def test_transfer_insufficient_balance(self):
        t = make_token()
        with pytest.raises(InsufficientBalanceError):
            t.transfer(BOB, ALICE, 1)

    def test_transfer_records_event(self):
        t = make_token()
        t.transfer(ALICE, BOB, 1)
        assert t.events[-1].to_dict()["event"] == "Transfer"


class TestPoolTokenAllowance:

    def test_approve_overwrites(self):
        t = make_token()
        t.approve(ALICE, SPENDER, 100)
        t.approve(ALICE, SPENDER, 30)
        assert t.allowance(ALICE, SPENDER) == 30
        assert isinstance(t.events[-1], ApprovalEvent)

    def test_approve_negative_raises(self):
        with pytest.raises(TokenError):
            make_token().approve(ALICE, SPENDER, -1)

    def test_approve_zero_allowed(self):
        t = make_token()
        t.approve(ALICE, SPENDER, 0)
        assert t.allowance(ALICE, SPENDER) == 0

    def test_transfer_from(self):
        t = make_token()
        t.approve(ALICE, SPENDER, 300)
        t.transfer_from(SPENDER, ALICE, BOB, 200)
        assert t.balance_of(BOB) == 200
        assert t.allowance(ALICE, SPENDER) == 100

    def test_transfer_from_exceeds_allowance(self):
        t = make_token()
        t.approve(ALICE, SPENDER, 10)
        with pytest.raises(InsufficientAllowanceError):
            t.transfer_from(SPENDER, ALICE, BOB, 11)
        assert t.balance_of(ALICE) == 1_000
        assert t.allowance(ALICE, SPENDER) == 10

    def test_transfer_from_exceeds_balance(self):
        t = make_token()
        t.approve(BOB, SPENDER, 10)
        with pytest.raises(InsufficientBalanceError):
            t.transfer_from(SPENDER, BOB, ALICE, 10)
