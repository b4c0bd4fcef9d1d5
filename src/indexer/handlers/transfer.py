"""Tracked-token Transfer: balances, holders, supply, buy/sell, daily rollup."""

from dataclasses import replace

from loguru import logger

from src.indexer.entities import (
    ZERO_ADDRESS,
    Account,
    DailyTokenActivity,
    Pool,
    PoolRelation,
    Token,
    Transfer,
    account_id,
    daily_token_id,
    event_id,
    pool_id,
    token_id,
)
from src.indexer.events import TransferEvent
from src.indexer.fixed_point import ZERO, day_id, day_start, to_decimal
from src.indexer.handlers.base import HandlerContext, TrackedToken, record_trade
from src.indexer.store import EntityReader, ReadSet, WriteSet, read_all


class TransferHandler:
    def __init__(self, tracked_token: TrackedToken) -> None:
        self._tracked = tracked_token

    async def warm(self, event: TransferEvent, reader: EntityReader) -> ReadSet:
        meta = event.meta
        chain = meta.chain_id
        return await read_all(reader, [
            (Token, token_id(chain, self._tracked.address)),
            (Account, account_id(chain, event.from_address)),
            (Account, account_id(chain, event.to_address)),
            (Pool, pool_id(chain, event.from_address)),
            (Pool, pool_id(chain, event.to_address)),
            (DailyTokenActivity, daily_token_id(chain, meta.block_timestamp)),
            (Transfer, event_id(chain, meta.block_number, meta.log_index)),
        ])

    async def apply(self, event: TransferEvent, reads: ReadSet, ctx: HandlerContext) -> WriteSet:
        meta = event.meta
        chain = meta.chain_id
        ts = meta.block_timestamp
        tracked = ctx.tracked_token

        if not tracked.matches(meta.src_address):
            logger.debug(f"[TRANSFER] Ignoring transfer from non-tracked contract {meta.src_address}")
            return WriteSet()

        record_id = event_id(chain, meta.block_number, meta.log_index)
        if reads.get(Transfer, record_id) is not None:
            logger.debug(f"[TRANSFER] {record_id} already applied, skipping")
            return WriteSet()

        sender, receiver = event.from_address, event.to_address
        value = to_decimal(event.value, tracked.decimals)

        from_is_pool = reads.get(Pool, pool_id(chain, sender)) is not None
        to_is_pool = reads.get(Pool, pool_id(chain, receiver)) is not None
        if from_is_pool:
            relation = PoolRelation.BUY
        elif to_is_pool:
            relation = PoolRelation.SELL
        else:
            relation = PoolRelation.NONE

        prior = {
            sender: reads.get(Account, account_id(chain, sender)),
            receiver: reads.get(Account, account_id(chain, receiver)),
        }
        accounts: dict[str, Account] = {}
        holder_delta = 0

        # sender first, so a self-transfer sees its own debit
        if sender != ZERO_ADDRESS:
            existing = prior[sender]
            account = existing or Account.new(chain, sender)
            if not from_is_pool and existing is not None:
                if account.balance > ZERO and account.balance - value <= ZERO:
                    holder_delta -= 1
            account = replace(
                account,
                balance=account.balance - value,
                total_sent=account.total_sent + value,
                transfer_count=account.transfer_count + 1,
                first_transfer_at=account.first_transfer_at if account.first_transfer_at is not None else ts,
                last_transfer_at=ts,
            )
            if account.balance < ZERO and not from_is_pool:
                logger.warning(
                    f"[TRANSFER] {sender} balance went negative ({account.balance}) at {record_id}"
                )
            if relation is PoolRelation.SELL:
                account = record_trade(account, relation, value, meta)
            accounts[sender] = account

        if receiver != ZERO_ADDRESS:
            account = accounts.get(receiver) or prior[receiver] or Account.new(chain, receiver)
            if not to_is_pool:
                if account.balance <= ZERO and account.balance + value > ZERO:
                    holder_delta += 1
            account = replace(
                account,
                balance=account.balance + value,
                total_received=account.total_received + value,
                transfer_count=account.transfer_count + (0 if receiver == sender else 1),
                first_transfer_at=account.first_transfer_at if account.first_transfer_at is not None else ts,
                last_transfer_at=ts,
            )
            if relation is PoolRelation.BUY:
                account = record_trade(account, relation, value, meta)
            accounts[receiver] = account

        token = reads.get(Token, token_id(chain, tracked.address)) or Token(
            id=token_id(chain, tracked.address),
            chain_id=chain,
            address=tracked.address,
            symbol=tracked.symbol,
            name=tracked.name,
            decimals=tracked.decimals,
        )
        supply = token.total_supply
        if sender == ZERO_ADDRESS:
            supply += value
        if receiver == ZERO_ADDRESS:
            supply -= value
        token = replace(
            token,
            total_supply=supply,
            total_transfers=token.total_transfers + 1,
            total_volume=token.total_volume + value,
            holder_count=max(0, token.holder_count + holder_delta),
        )

        transfer = Transfer(
            id=record_id,
            chain_id=chain,
            tx_hash=meta.tx_hash,
            timestamp=ts,
            block_number=meta.block_number,
            log_index=meta.log_index,
            from_id=account_id(chain, sender),
            to_id=account_id(chain, receiver),
            value=value,
            is_pool_related=relation is not PoolRelation.NONE,
            pool_related_type=relation,
        )

        is_new_account = (
            prior[receiver] is None and receiver != ZERO_ADDRESS and not to_is_pool
        )
        midnight = day_start(ts)
        active = 0
        for address, is_pool in dict.fromkeys([(sender, from_is_pool), (receiver, to_is_pool)]):
            if address == ZERO_ADDRESS or is_pool:
                continue
            before = prior[address]
            if before is None or before.last_transfer_at is None or before.last_transfer_at < midnight:
                active += 1

        day_key = daily_token_id(chain, ts)
        day = reads.get(DailyTokenActivity, day_key) or DailyTokenActivity(
            id=day_key, chain_id=chain, date=day_id(ts), timestamp=midnight
        )
        day = replace(
            day,
            daily_transfers=day.daily_transfers + 1,
            daily_volume=day.daily_volume + value,
            daily_active_accounts=day.daily_active_accounts + active,
            new_accounts=day.new_accounts + (1 if is_new_account else 0),
        )

        if holder_delta:
            logger.debug(f"[TRANSFER] {record_id}: holder count {holder_delta:+d} -> {token.holder_count}")

        return WriteSet(entities=[token, *accounts.values(), transfer, day])
