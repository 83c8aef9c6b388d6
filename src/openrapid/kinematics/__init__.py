"""
Kinematics - forward kinematics and pluggable inverse kinematics solvers.
"""

from openrapid.kinematics.forward import ForwardKinematics, ForwardKinematicsResult
from openrapid.kinematics.inverse import (
    AnalyticInverseKinematics,
    IKSolution,
    InverseKinematicsSolver,
    NumericalInverseKinematics,
)

__all__ = [
    "ForwardKinematics",
    "ForwardKinematicsResult",
    "AnalyticInverseKinematics",
    "IKSolution",
    "InverseKinematicsSolver",
    "NumericalInverseKinematics",
]
