"""Referral codes and the leaderboard."""
from __future__ import annotations

import logging
import uuid
from typing import List

from garden_tap.constants import LEADERBOARD_SIZE, MAIN_CURRENCY, ReferralStatus
from garden_tap.repository.base import LeaderboardEntry, PlayerRepository
from garden_tap.services import wallet
from garden_tap.services.progression import ProgressionEngine

logger = logging.getLogger(__name__)

REFERRAL_CODE_LENGTH = 8


def _new_code() -> str:
    return uuid.uuid4().hex[:REFERRAL_CODE_LENGTH].upper()


async def _unique_code(repo: PlayerRepository) -> str:
    while True:
        code = _new_code()
        if await repo.find_player_by_referral_code(code) is None:
            return code


async def get_referral_code(engine: ProgressionEngine, player_id: str) -> str:
    """Return the player's referral code, generating it on first request."""

    async with engine.player_session(player_id) as (repo, state):
        if not state.referral_code:
            state.referral_code = await _unique_code(repo)
        return state.referral_code


async def referral_stats(engine: ProgressionEngine, player_id: str) -> dict:
    async with engine.player_session(player_id) as (repo, state):
        if not state.referral_code:
            state.referral_code = await _unique_code(repo)
        return {
            "code": state.referral_code,
            "referralsCount": state.referrals_count,
            "referralCoins": state.referral_coins,
            "referredBy": state.referred_by,
        }


async def apply_referral_code(engine: ProgressionEngine, player_id: str, code: str) -> ReferralStatus:
    """Link ``player_id`` to the owner of ``code`` and reward the owner.

    Both players are written in the same unit of work.
    """

    code = (code or "").strip().upper()
    reward = engine.settings.REFERRAL_REWARD
    async with engine.player_session(player_id) as (repo, state):
        if code and state.referral_code == code:
            return ReferralStatus.OWN_CODE
        if state.referred_by:
            return ReferralStatus.ALREADY_APPLIED
        referrer = await repo.find_player_by_referral_code(code) if code else None
        if referrer is None:
            return ReferralStatus.NOT_FOUND
        if referrer.player_id == player_id:
            return ReferralStatus.OWN_CODE

        state.referred_by = referrer.player_id
        credited = wallet.credit(referrer, MAIN_CURRENCY, reward)
        referrer.referrals_count += 1
        referrer.referral_coins += credited
        await repo.save_player(referrer)
        logger.info(
            "Referral code applied",
            extra={"player_id": player_id, "referrer_id": referrer.player_id, "reward": credited},
        )
        return ReferralStatus.OK


async def leaderboard(engine: ProgressionEngine, limit: int = LEADERBOARD_SIZE) -> List[LeaderboardEntry]:
    async with engine.storage.begin() as repo:
        return await repo.top_players(max(1, limit))
