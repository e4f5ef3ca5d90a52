"""Known-vulnerability report for a resolved dependency graph.

Two phases keep round trips low on graphs with thousands of packages:
one OSV batch query flags which packages have advisories at all, then
full records are fetched concurrently only for the flagged ones.
"""

import asyncio
import logging
import re
from typing import Any, Protocol

from ..clients.osv_client import PackageQuery, Vulnerability
from ..core.exceptions import ClientError
from ..models import (
    DependencyGraph,
    PackageNode,
    PackageVulnerabilityInfo,
    Severity,
    SeverityCounts,
    VulnerabilitySummary,
    VulnerabilityTreeResult,
)
from .deprecations import collect_deprecated_packages

logger = logging.getLogger(__name__)

_QUALITATIVE_SEVERITIES = {
    "critical": Severity.CRITICAL,
    "high": Severity.HIGH,
    "moderate": Severity.MODERATE,
    "medium": Severity.MODERATE,
    "low": Severity.LOW,
}

# Trailing number of a bare score or a CVSS vector, e.g. "7.5" or ".../A:H/9.8"
_SCORE_RE = re.compile(r"(?:^|[/:])(\d+(?:\.\d+)?)$")


class AdvisoryDatabase(Protocol):
    async def query_batch(self, packages: list[PackageQuery]) -> list[bool]: ...

    async def query_package(self, name: str, version: str) -> list[Vulnerability]: ...


def severity_from_score(score: str | None) -> Severity:
    if not score:
        return Severity.UNKNOWN
    match = _SCORE_RE.search(score.strip())
    if not match:
        return Severity.UNKNOWN

    value = float(match.group(1))
    if value >= 9.0:
        return Severity.CRITICAL
    if value >= 7.0:
        return Severity.HIGH
    if value >= 4.0:
        return Severity.MODERATE
    if value > 0:
        return Severity.LOW
    return Severity.UNKNOWN


def get_severity_level(vuln: Vulnerability | dict[str, Any]) -> Severity:
    """Normalize an advisory's severity.

    The database's qualitative label wins when present; otherwise the
    first CVSS-style score is bucketed.
    """
    if isinstance(vuln, dict):
        vuln = Vulnerability(**vuln)

    qualitative = vuln.database_specific.get("severity")
    if isinstance(qualitative, str):
        level = _QUALITATIVE_SEVERITIES.get(qualitative.strip().lower())
        if level is not None:
            return level

    if vuln.severity:
        score = vuln.severity[0].get("score")
        if score is not None:
            return severity_from_score(str(score))

    return Severity.UNKNOWN


def get_vulnerability_url(vuln: Vulnerability) -> str:
    if vuln.id.startswith("GHSA-"):
        return f"https://github.com/advisories/{vuln.id}"
    cve = next((a for a in vuln.aliases if a.startswith("CVE-")), None)
    if cve:
        return f"https://nvd.nist.gov/vuln/detail/{cve}"
    return f"https://osv.dev/vulnerability/{vuln.id}"


def summarize_vulnerabilities(
    node: PackageNode, vulns: list[Vulnerability]
) -> PackageVulnerabilityInfo:
    ranked = sorted(
        ((get_severity_level(v), v) for v in vulns), key=lambda pair: pair[0].rank
    )
    counts = SeverityCounts()
    summaries = []
    for severity, vuln in ranked:
        counts.add(severity)
        summaries.append(
            VulnerabilitySummary(
                id=vuln.id,
                summary=vuln.summary or "No description available",
                severity=severity,
                aliases=vuln.aliases,
                url=get_vulnerability_url(vuln),
            )
        )
    return PackageVulnerabilityInfo(
        name=node.name,
        version=node.version,
        depth=node.depth,
        path=list(node.path),
        vulnerabilities=summaries,
        counts=counts,
    )


def _report_sort_key(info: PackageVulnerabilityInfo) -> tuple[int, int, int, int, int]:
    return (
        info.depth.rank,
        -info.counts.critical,
        -info.counts.high,
        -info.counts.moderate,
        -info.counts.total,
    )


class VulnerabilityAnalyzer:
    def __init__(self, osv_client: AdvisoryDatabase) -> None:
        self.osv_client = osv_client

    async def _find_flagged(self, nodes: list[PackageNode]) -> list[int] | None:
        """Phase 1. Returns flagged indices, or None if the batch failed."""
        if not nodes:
            return []
        try:
            flags = await self.osv_client.query_batch(
                [PackageQuery(name=n.name, version=n.version) for n in nodes]
            )
        except ClientError as e:
            logger.warning(f"OSV batch query failed: {e}")
            return None
        return [i for i, flagged in enumerate(flags) if flagged]

    async def _fetch_details(self, node: PackageNode) -> PackageVulnerabilityInfo | None:
        """Phase 2 for one package. Returns None if the lookup failed."""
        try:
            vulns = await self.osv_client.query_package(node.name, node.version)
        except ClientError as e:
            logger.warning(
                f"OSV detail query failed for {node.name}@{node.version}: {e}"
            )
            return None
        if not vulns:
            # Flagged by the batch but nothing came back
            return None
        return summarize_vulnerabilities(node, vulns)

    async def analyze(self, graph: DependencyGraph) -> VulnerabilityTreeResult:
        root = graph.root
        nodes = graph.nodes()
        total_packages = graph.dependency_count

        flagged = await self._find_flagged(nodes)
        vulnerable: list[PackageVulnerabilityInfo] = []

        if flagged is None:
            failed_queries = total_packages
            logger.critical(
                f"OSV batch query failed for {root.name}@{root.version} "
                f"({len(nodes)} packages)",
                extra={
                    "event": "osv_batch_failed",
                    "package": root.name,
                    "version": root.version,
                    "total_packages": total_packages,
                },
            )
        else:
            failed_queries = 0
            if flagged:
                details = await asyncio.gather(
                    *(self._fetch_details(nodes[i]) for i in flagged)
                )
                for info in details:
                    if info is None:
                        failed_queries += 1
                    else:
                        vulnerable.append(info)

        vulnerable.sort(key=_report_sort_key)

        total_counts = SeverityCounts()
        for info in vulnerable:
            total_counts.merge(info.counts)

        return VulnerabilityTreeResult(
            package=root.name,
            version=root.version,
            vulnerable_packages=vulnerable,
            deprecated_packages=collect_deprecated_packages(graph),
            total_packages=total_packages,
            failed_queries=failed_queries,
            total_counts=total_counts,
        )
