"""Configure, compile and install dependencies into the shared prefix."""

from sbo.build.builder import BuildStep, build_dependency, plan_steps

__all__ = ["BuildStep", "build_dependency", "plan_steps"]
