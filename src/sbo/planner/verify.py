"""Post-build verification of the produced binary.

Every check here is advisory: discrepancies become
``VerificationMismatch`` warnings on the report and are never raised.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from sbo.core.formatting import tail_lines
from sbo.core.subprocess_utils import CommandRunner
from sbo.errors import VerificationMismatch
from sbo.features.models import FeatureFlag
from sbo.planner.models import VerificationReport
from sbo.tools.detection import parse_binary_version, parse_encoder_list

logger = logging.getLogger(__name__)

VERIFY_TIMEOUT = 30

STATIC_MARKERS = ("not a dynamic executable", "statically linked")


def is_static_output(ldd_output: str) -> bool:
    """Return True if ldd output says the binary has no dynamic deps."""
    lowered = ldd_output.lower()
    return any(marker in lowered for marker in STATIC_MARKERS)


def verify_binary(
    binary: Path,
    features: Iterable[FeatureFlag],
    runner: CommandRunner,
) -> VerificationReport:
    """Check that the binary is static and provides every enabled encoder.

    Args:
        binary: Executable to check.
        features: Resolved features; only enabled ones are checked.
        runner: Command runner.

    Returns:
        VerificationReport listing every mismatch found.
    """
    subject = binary.name
    mismatches: list[VerificationMismatch] = []

    def mismatch(message: str) -> None:
        warning = VerificationMismatch(subject, message)
        logger.warning("%s", warning)
        mismatches.append(warning)

    # ldd exits non-zero for static binaries, so only the text matters
    static: bool | None = None
    ldd = runner.run(["ldd", str(binary)], timeout=VERIFY_TIMEOUT)
    if ldd.returncode == 127:
        mismatch("static linking not checked: ldd is not available")
    else:
        static = is_static_output(ldd.output)
        if not static:
            mismatch(
                "binary has dynamic library dependencies:\n"
                + tail_lines(ldd.output, 10)
            )

    version = None
    result = runner.run([str(binary), "-version"], timeout=VERIFY_TIMEOUT)
    if result.ok:
        version = parse_binary_version(result.stdout)
        logger.info("%s reports version %s", subject, version or "unknown")
    else:
        mismatch(f"-version exited with status {result.returncode}")

    encoders: set[str] = set()
    result = runner.run(
        [str(binary), "-hide_banner", "-encoders"], timeout=VERIFY_TIMEOUT
    )
    if not result.ok:
        mismatch(f"-encoders exited with status {result.returncode}")
    else:
        encoders = parse_encoder_list(result.stdout)
        for feature in features:
            if not feature.enabled or not feature.encoders:
                continue
            missing = [e for e in feature.encoders if e.casefold() not in encoders]
            if missing:
                mismatch(
                    f"feature {feature.name} enabled but encoder(s) "
                    f"{', '.join(missing)} not listed"
                )
            else:
                logger.info(
                    "Confirmed %s: %s", feature.name, ", ".join(feature.encoders)
                )

    if not mismatches:
        logger.info("Verification passed for %s", binary)

    return VerificationReport(
        binary=binary,
        static=static,
        version=version,
        encoders=frozenset(encoders),
        mismatches=tuple(mismatches),
    )
