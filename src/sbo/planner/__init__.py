"""Final build planning, execution and verification."""

from sbo.planner.final import final_steps, run_final_build
from sbo.planner.models import BuildPlan, VerificationReport
from sbo.planner.plan import make_build_plan
from sbo.planner.verify import is_static_output, verify_binary

__all__ = [
    "BuildPlan",
    "VerificationReport",
    "final_steps",
    "is_static_output",
    "make_build_plan",
    "run_final_build",
    "verify_binary",
]
