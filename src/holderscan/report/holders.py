"""Render scan results as text lines or JSON."""

import json

from holderscan.domain.enums import OutputFormat, ScanStatus
from holderscan.domain.models.scan import HolderBalance, TokenScanResult


def format_holder_line(holder: HolderBalance) -> str:
    return f"Address: {holder.address}, Balance: {holder.display}"


def render_text(results: list[TokenScanResult]) -> str:
    lines: list[str] = []
    for result in results:
        lines.append(f"Token address: {result.token_address}")
        if result.status == ScanStatus.FAILED:
            lines.append(f"Scan failed: {result.error}")
            continue
        lines.extend(format_holder_line(h) for h in result.holders)
    return "\n".join(lines)


def render_json(results: list[TokenScanResult]) -> str:
    """Balances are emitted as strings; JSON numbers lose precision above 2**53."""
    payload = []
    for result in results:
        item = result.model_dump(mode="json")
        for holder in item["holders"]:
            holder["balance"] = str(holder["balance"])
        item["stats"]["ledger_sum"] = str(item["stats"]["ledger_sum"])
        payload.append(item)
    return json.dumps(payload, indent=2)


def render(results: list[TokenScanResult], fmt: OutputFormat = OutputFormat.TEXT) -> str:
    if fmt == OutputFormat.JSON:
        return render_json(results)
    return render_text(results)
