"""
Score Export

Renders a ScoreOutput for people and spreadsheets:
  - CSV: one row per construct
  - Summary: plain-text autonomy profile

Usage:
    from reflector.report import export_scores_csv, generate_summary
    csv_text = export_scores_csv(output)
    print(generate_summary(output))
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from reflector.assessment import ScoreOutput
from reflector.item_bank import CONSTRUCT_METADATA
from reflector.scorer import round_half_up

CSV_HEADER = ("Construct", "Score", "CI_Lower", "CI_Upper", "Interpretation", "Items", "Reliability")
NOT_AVAILABLE = "N/A"


def _reliability(value: Optional[float]) -> str:
    return f"{value:.3f}" if value is not None else NOT_AVAILABLE


def export_scores_csv(output: ScoreOutput) -> str:
    """CSV with a header row and one row per construct."""
    rows = [",".join(CSV_HEADER)]
    for construct, score in output.scores.items():
        rows.append(",".join(str(v) for v in (
            construct,
            score.raw,
            score.ci_lower,
            score.ci_upper,
            output.interpretation.get(construct, ""),
            score.n_items,
            _reliability(score.reliability),
        )))
    return "\n".join(rows)


def generate_summary(output: ScoreOutput, generated_at: Optional[datetime] = None) -> str:
    """Human-readable autonomy profile."""
    lines = ["REFLECTOR AUTONOMY PROFILE"]
    if generated_at is not None:
        lines.append(f"Generated: {generated_at.isoformat()}")
    lines.append(f"Subject: {output.subject_id}  Assessment: {output.assessment_id}")
    lines.append(f"Completion: {output.completion_percentage}%")
    lines.append("")

    lines.append(f"COMPOSITE AUTONOMY: {output.composite}/100")
    lines.append("(Weighted blend of Epistemic Autonomy + Reflective Flexibility)")
    lines.append("")
    lines.append("CONSTRUCT SCORES:")

    for construct, score in output.scores.items():
        tier = output.interpretation.get(construct, "")
        name = CONSTRUCT_METADATA.get(construct, {}).get("name", construct)
        lines.append("")
        lines.append(f"{construct}: {score.raw}/100 [{tier.upper()}]  {name}")
        lines.append(f"  95% CI: [{score.ci_lower}, {score.ci_upper}]")
        lines.append(f"  Precision: ±{round_half_up(score.ci_width / 2)} points")
        if score.reliability is not None:
            lines.append(f"  Reliability: {score.reliability:.3f}")

    integrity = output.response_integrity
    flags = []
    if integrity.straightlining:
        flags.append("straightlining")
    if integrity.completion_time_flag:
        flags.append("fast completion")
    if flags:
        lines.append("")
        lines.append(f"INTEGRITY FLAGS: {', '.join(flags)}")

    return "\n".join(lines) + "\n"
