"""
Gateway client for a remote fight service.

Uses httpx against a JSON gateway in front of the authoritative
simulator. Fight responses arrive in wire format and are decoded by the
move log normalizer.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from ..config import env_gateway_timeout, env_gateway_url
from ..errors import DecodeError, DefenceNotFoundError, GatewayError
from ..fight_record import FightRecord
from ..normalizer import decode_byte_array, decode_fight_record, encode_byte_array, parse_int
from .fight_service import LeaderboardEntry, PlayerDefence, sort_leaderboard

logger = logging.getLogger(__name__)


class GatewayFightService:
    """
    FightService implementation backed by an HTTP gateway.

    Endpoints:
        POST /replay, POST /attack, POST /defences,
        GET /defences/{account}, GET /defences, GET /leaderboard
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        ship_count: int = 4,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the gateway client.

        Args:
            base_url: Gateway URL (defaults to FLEET_REPLAY_GATEWAY_URL env var)
            ship_count: Number of ship types in every per-type array
            timeout: Request timeout in seconds (defaults to
                FLEET_REPLAY_GATEWAY_TIMEOUT env var, else 60)
            transport: Optional httpx transport (e.g. httpx.MockTransport)
        """
        self.base_url = base_url or env_gateway_url()
        self.ship_count = ship_count

        if not self.base_url:
            raise ValueError(
                "Gateway URL required. Set FLEET_REPLAY_GATEWAY_URL env var or pass base_url."
            )

        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else env_gateway_timeout(),
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> 'GatewayFightService':
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        logger.debug("%s %s%s", method, self.base_url, path)
        try:
            response = self._client.request(method, path, json=payload)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise GatewayError(
                f"Gateway returned HTTP {e.response.status_code} for {method} {path}: {e.response.text}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise GatewayError(f"Gateway request {method} {path} failed: {e}") from e
        except ValueError as e:
            raise GatewayError(f"Gateway returned invalid JSON for {method} {path}") from e

    def _decode_defence(self, data: Dict[str, Any]) -> PlayerDefence:
        try:
            return PlayerDefence(
                account=data["account"],
                selection=decode_byte_array(data["selection"], self.ship_count, "selection"),
                variants=decode_byte_array(data["variants"], self.ship_count, "variants"),
                commander=parse_int(data.get("commander", 0), "commander"),
                name=data.get("name", ""),
                wins=parse_int(data.get("wins", 0), "wins"),
                losses=parse_int(data.get("losses", 0), "losses"),
            )
        except KeyError as e:
            raise DecodeError(f"Missing field {e} in defence") from e

    def replay(
        self,
        seed: int,
        selection_lhs: Sequence[int],
        selection_rhs: Sequence[int],
        variants_lhs: Sequence[int],
        variants_rhs: Sequence[int],
        commander_lhs: int = 0,
        commander_rhs: int = 0,
    ) -> FightRecord:
        data = self._request("POST", "/replay", {
            "seed": seed,
            "selection_lhs": encode_byte_array(selection_lhs, "selection_lhs"),
            "selection_rhs": encode_byte_array(selection_rhs, "selection_rhs"),
            "variants_lhs": encode_byte_array(variants_lhs, "variants_lhs"),
            "variants_rhs": encode_byte_array(variants_rhs, "variants_rhs"),
            "commander_lhs": commander_lhs,
            "commander_rhs": commander_rhs,
        })
        return decode_fight_record(data, self.ship_count)

    def attack(
        self,
        attacker: str,
        target: str,
        selection: Sequence[int],
        variants: Sequence[int],
        commander: int = 0,
    ) -> FightRecord:
        data = self._request("POST", "/attack", {
            "attacker": attacker,
            "target": target,
            "selection": encode_byte_array(selection, "selection"),
            "variants": encode_byte_array(variants, "variants"),
            "commander": commander,
        })
        return decode_fight_record(data, self.ship_count)

    def register_defence(
        self,
        account: str,
        selection: Sequence[int],
        variants: Sequence[int],
        commander: int = 0,
        name: str = "",
    ) -> None:
        self._request("POST", "/defences", {
            "account": account,
            "selection": encode_byte_array(selection, "selection"),
            "variants": encode_byte_array(variants, "variants"),
            "commander": commander,
            "name": name,
        })

    def get_own_defence(self, account: str) -> PlayerDefence:
        """
        Raises:
            DefenceNotFoundError: If the gateway answers 404.
            GatewayError: On any other failure.
        """
        try:
            data = self._request("GET", f"/defences/{account}")
        except GatewayError as e:
            if e.status_code == 404:
                raise DefenceNotFoundError(account) from e
            raise
        return self._decode_defence(data)

    def get_all_defenders(self) -> List[PlayerDefence]:
        return [self._decode_defence(item) for item in self._request("GET", "/defences")]

    def get_leaderboard(self) -> List[LeaderboardEntry]:
        data = self._request("GET", "/leaderboard")
        try:
            entries = [
                LeaderboardEntry(
                    address=item["address"],
                    wins=parse_int(item["wins"], "wins"),
                    losses=parse_int(item["losses"], "losses"),
                )
                for item in data
            ]
        except KeyError as e:
            raise DecodeError(f"Missing field {e} in leaderboard entry") from e
        return sort_leaderboard(entries)
