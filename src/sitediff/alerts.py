"""
Threshold alert engine.

Each rule compares a dev value against its prod counterpart (or a single prod
value against a floor/ceiling) and emits at most one AlertRecord. A rule whose
threshold is unset, or whose inputs are missing, is skipped silently.
"""

import json
import math
from collections.abc import Mapping
from typing import Any

from .logger import get_logger
from .models import AlertRecord, ComparisonExtras, ComparisonThresholds, PageAnalysis

logger = get_logger(__name__)

DEFAULT_THRESHOLDS = ComparisonThresholds(
    html_size_diff=20,
    script_count_diff=5,
    image_count_diff=10,
    performance_score_diff=10,
    seo_score_diff=5,
    broken_links_max=0,
    lighthouse_performance_min=80,
)

STRICT_THRESHOLDS = ComparisonThresholds(
    html_size_diff=10,
    script_count_diff=2,
    image_count_diff=5,
    performance_score_diff=5,
    seo_score_diff=2,
    broken_links_max=0,
    lighthouse_performance_min=90,
)

THRESHOLD_PRESETS: dict[str, ComparisonThresholds] = {
    "default": DEFAULT_THRESHOLDS,
    "strict": STRICT_THRESHOLDS,
}

CRITICAL_META_TAGS = ("description", "og:title", "og:description")

DEFAULT_VISUAL_THRESHOLD = 5.0


def get_thresholds(name: str) -> ComparisonThresholds:
    """Look up a named threshold preset."""
    try:
        return THRESHOLD_PRESETS[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown threshold preset: {name}. Use one of: {', '.join(THRESHOLD_PRESETS)}"
        ) from None


def format_bytes(size: float) -> str:
    """Format a byte count for humans, e.g. ``1.5 KB``."""
    if size == 0:
        return "0 Bytes"

    units = ["Bytes", "KB", "MB", "GB"]
    index = max(0, min(int(math.floor(math.log(size, 1024))), len(units) - 1))
    return f"{round(size / 1024**index, 2):g} {units[index]}"


class AlertSystem:
    """
    Collects alerts for one comparison run in evaluation order.

    Create one per comparison; records are never removed or reordered.
    """

    def __init__(self, thresholds: ComparisonThresholds | None = None):
        self.thresholds = thresholds or ComparisonThresholds()
        self.alerts: list[AlertRecord] = []

    def _emit(self, record: AlertRecord) -> AlertRecord:
        self.alerts.append(record)
        return record

    def check_html_size(self, dev_size: int, prod_size: int) -> AlertRecord | None:
        threshold = self.thresholds.html_size_diff
        if threshold is None:
            return None
        if dev_size == 0:
            logger.debug("Skipping HTML size rule: development HTML is empty")
            return None

        diff_percent = abs((prod_size - dev_size) / dev_size * 100)
        if diff_percent <= threshold:
            return None

        direction = "increased" if prod_size > dev_size else "decreased"
        return self._emit(
            AlertRecord(
                severity="warning",
                category="Performance",
                message=(
                    f"HTML size {direction} by {diff_percent:.1f}% "
                    f"({format_bytes(dev_size)} → {format_bytes(prod_size)})"
                ),
                threshold=threshold,
                actual_value=diff_percent,
            )
        )

    def _check_count(
        self, label: str, threshold: int | None, dev_count: int, prod_count: int
    ) -> AlertRecord | None:
        if threshold is None:
            return None

        diff = prod_count - dev_count
        if abs(diff) <= threshold:
            return None

        return self._emit(
            AlertRecord(
                severity="warning" if diff > 0 else "info",
                category="DOM",
                message=(
                    f"{label} count {'increased' if diff > 0 else 'decreased'} by {abs(diff)} "
                    f"({dev_count} → {prod_count})"
                ),
                threshold=threshold,
                actual_value=abs(diff),
            )
        )

    def check_script_count(self, dev_count: int, prod_count: int) -> AlertRecord | None:
        return self._check_count("Script", self.thresholds.script_count_diff, dev_count, prod_count)

    def check_image_count(self, dev_count: int, prod_count: int) -> AlertRecord | None:
        return self._check_count("Image", self.thresholds.image_count_diff, dev_count, prod_count)

    def _check_regression(
        self, label: str, category: str, threshold: float | None, dev_score: float, prod_score: float
    ) -> AlertRecord | None:
        if threshold is None:
            return None

        # Only a drop in production counts; doing better never alerts
        diff = dev_score - prod_score
        if diff <= threshold:
            return None

        return self._emit(
            AlertRecord(
                severity="error",
                category=category,
                message=f"{label} score decreased by {diff:g} points ({dev_score:g} → {prod_score:g})",
                threshold=threshold,
                actual_value=diff,
            )
        )

    def check_performance_score(self, dev_score: float, prod_score: float) -> AlertRecord | None:
        return self._check_regression(
            "Performance", "Performance", self.thresholds.performance_score_diff, dev_score, prod_score
        )

    def check_seo_score(self, dev_score: float, prod_score: float) -> AlertRecord | None:
        return self._check_regression("SEO", "SEO", self.thresholds.seo_score_diff, dev_score, prod_score)

    def check_broken_links(self, broken_count: int) -> AlertRecord | None:
        threshold = self.thresholds.broken_links_max
        if threshold is None or broken_count <= threshold:
            return None

        return self._emit(
            AlertRecord(
                severity="error",
                category="Links",
                message=f"Found {broken_count} broken link(s) (max allowed: {threshold})",
                threshold=threshold,
                actual_value=broken_count,
            )
        )

    def check_lighthouse_performance(self, score: float) -> AlertRecord | None:
        threshold = self.thresholds.lighthouse_performance_min
        if threshold is None or score >= threshold:
            return None

        return self._emit(
            AlertRecord(
                severity="error",
                category="Performance",
                message=f"Lighthouse performance score ({score:g}) is below minimum ({threshold:g})",
                threshold=threshold,
                actual_value=score,
            )
        )

    def check_visual_regression(
        self, percentage_diff: float, threshold: float = DEFAULT_VISUAL_THRESHOLD
    ) -> AlertRecord | None:
        if percentage_diff <= threshold:
            return None

        return self._emit(
            AlertRecord(
                severity="warning",
                category="Visual",
                message=(
                    f"Visual difference detected: {percentage_diff:.2f}% of pixels changed "
                    f"(threshold: {threshold:g}%)"
                ),
                threshold=threshold,
                actual_value=percentage_diff,
            )
        )

    def check_meta_tags(
        self, dev_metas: Mapping[str, str | None], prod_metas: Mapping[str, str | None]
    ) -> list[AlertRecord]:
        """Check the critical meta tags for presence and parity, in a fixed order."""
        emitted = []
        for name in CRITICAL_META_TAGS:
            dev_value = dev_metas.get(name)
            prod_value = prod_metas.get(name)

            if dev_value and not prod_value:
                emitted.append(
                    self._emit(
                        AlertRecord(
                            severity="error",
                            category="SEO",
                            message=f'Critical meta tag "{name}" missing in production',
                        )
                    )
                )
            elif dev_value and prod_value and dev_value != prod_value:
                emitted.append(
                    self._emit(
                        AlertRecord(
                            severity="info",
                            category="SEO",
                            message=f'Meta tag "{name}" differs between dev and production',
                        )
                    )
                )
        return emitted

    def evaluate(
        self,
        dev: PageAnalysis,
        prod: PageAnalysis,
        extras: ComparisonExtras | None = None,
        visual_threshold: float = DEFAULT_VISUAL_THRESHOLD,
    ) -> list[AlertRecord]:
        """
        Run every rule in its fixed order.

        Order: HTML size, script count, image count, performance score, SEO
        score, broken links, Lighthouse floor, visual regression, meta tags.

        Args:
            dev: Analysis of the development page
            prod: Analysis of the production page
            extras: Collaborator-supplied scores; missing values skip rules
            visual_threshold: Pixel-difference percentage that triggers a warning

        Returns:
            All alerts collected so far
        """
        extras = extras or ComparisonExtras()

        self.check_html_size(dev.performance.html_size, prod.performance.html_size)
        self.check_script_count(dev.dom.scripts, prod.dom.scripts)
        self.check_image_count(dev.dom.images, prod.dom.images)

        dev_perf = (
            extras.performance_score_dev
            if extras.performance_score_dev is not None
            else dev.performance.score
        )
        prod_perf = (
            extras.performance_score_prod
            if extras.performance_score_prod is not None
            else prod.performance.score
        )
        self.check_performance_score(dev_perf, prod_perf)

        if extras.seo_score_dev is not None and extras.seo_score_prod is not None:
            self.check_seo_score(extras.seo_score_dev, extras.seo_score_prod)
        if extras.broken_links is not None:
            self.check_broken_links(extras.broken_links)
        if extras.lighthouse_performance is not None:
            self.check_lighthouse_performance(extras.lighthouse_performance)
        if extras.visual_diff_percent is not None:
            self.check_visual_regression(extras.visual_diff_percent, visual_threshold)

        self.check_meta_tags(dev.seo.meta_values(), prod.seo.meta_values())
        return self.alerts

    def by_severity(self, severity: str) -> list[AlertRecord]:
        return [alert for alert in self.alerts if alert.severity == severity]

    def by_category(self, category: str) -> list[AlertRecord]:
        return [alert for alert in self.alerts if alert.category == category]

    @property
    def has_errors(self) -> bool:
        return any(alert.severity == "error" for alert in self.alerts)

    def summary(self) -> dict[str, Any]:
        return summarize_alerts(self.alerts)

    def to_json(self) -> str:
        return json.dumps([alert.to_dict() for alert in self.alerts], indent=2, ensure_ascii=False)


def summarize_alerts(alerts: list[AlertRecord]) -> dict[str, Any]:
    """Count alerts by severity and by category."""
    categories: dict[str, int] = {}
    for alert in alerts:
        categories[alert.category] = categories.get(alert.category, 0) + 1

    return {
        "total": len(alerts),
        "errors": sum(1 for alert in alerts if alert.severity == "error"),
        "warnings": sum(1 for alert in alerts if alert.severity == "warning"),
        "info": sum(1 for alert in alerts if alert.severity == "info"),
        "categories": categories,
    }
