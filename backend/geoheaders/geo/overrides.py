"""
Operator supplied CIDR -> location overrides.

Rules are evaluated in declaration order and the first range containing the
address wins, regardless of prefix length.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from ipaddress import IPv4Network, IPv6Network, ip_address, ip_network
from typing import Iterable, Sequence, Union

from geoheaders.core.config import LocationRewrite
from geoheaders.geo.errors import AddressNotFound, InvalidOverrideConfig, UnparseableAddress
from geoheaders.geo.result import GeoRecord


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OverrideRule:
    network: Union[IPv4Network, IPv6Network]
    record: GeoRecord

    @classmethod
    def from_rewrite(cls, rewrite: LocationRewrite) -> "OverrideRule":
        try:
            network = ip_network(rewrite.ip_range.strip(), strict=False)
        except ValueError as exc:
            raise InvalidOverrideConfig(f"invalid ipRange {rewrite.ip_range!r}") from exc
        return cls(
            network=network,
            record=GeoRecord.compose(
                country=rewrite.country,
                region=rewrite.region,
                city=rewrite.city,
                latitude=rewrite.latitude,
                longitude=rewrite.longitude,
            ),
        )


class OverrideTable:
    def __init__(self, rules: Sequence[OverrideRule] = ()) -> None:
        self._rules = tuple(rules)

    @classmethod
    def from_rewrites(cls, rewrites: Iterable[LocationRewrite]) -> "OverrideTable":
        return cls([OverrideRule.from_rewrite(rewrite) for rewrite in rewrites])

    @classmethod
    def disabled(cls) -> "OverrideTable":
        return cls(())

    @property
    def rules(self) -> tuple[OverrideRule, ...]:
        return self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def match(self, address: str) -> GeoRecord:
        try:
            ip = ip_address((address or "").strip())
        except ValueError as exc:
            raise UnparseableAddress(f"not an IP address: {address!r}") from exc
        for rule in self._rules:
            # Containment across families is simply False.
            if ip in rule.network:
                return rule.record
        raise AddressNotFound(f"no override covers {ip}")


def build_override_table(rewrites: Iterable[LocationRewrite]) -> OverrideTable:
    """
    Parse all rewrites; a single bad range disables the whole table.
    """
    rewrites = list(rewrites)
    try:
        table = OverrideTable.from_rewrites(rewrites)
    except InvalidOverrideConfig as exc:
        logger.error(
            "geoip.override_config_invalid",
            extra={"error": str(exc), "rule_count": len(rewrites)},
        )
        return OverrideTable.disabled()
    return table
