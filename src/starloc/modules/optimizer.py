"""Reprojection problem on top of a nonlinear least squares solver."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np
import pyceres

from ..config.config import LocalizerConfig
from ..geometry import inverse_rotation_jacobian, quaternion_to_rotation


@dataclass
class SolveSummary:
    """Outcome of one solver run."""

    converged: bool
    usable: bool
    initial_cost: float
    final_cost: float
    message: str = ""


class ResidualProblem(ABC):
    """
    Solver capabilities needed for pose refinement.

    Parameter blocks are numpy arrays owned by the caller; the solver
    updates them in place.
    """

    @abstractmethod
    def add_reprojection_residual(
        self,
        observed: np.ndarray,
        world_point: np.ndarray,
        position: np.ndarray,
        orientation: np.ndarray,
        intrinsics: np.ndarray,
    ) -> None:
        """Add one pixel residual of a world point seen from the ego pose."""

    @abstractmethod
    def clear_residuals(self) -> None:
        """Remove all residuals, parameter blocks and their settings stay."""

    @abstractmethod
    def set_parameter_upper_bound(self, block: np.ndarray, index: int, value: float) -> None:
        pass

    @abstractmethod
    def set_quaternion_manifold(self, block: np.ndarray) -> None:
        pass

    @abstractmethod
    def set_subset_manifold(self, block: np.ndarray, constant_indices: list[int]) -> None:
        pass

    @abstractmethod
    def set_parameter_block_constant(self, block: np.ndarray) -> None:
        pass

    @abstractmethod
    def solve(self) -> SolveSummary:
        pass

    @property
    @abstractmethod
    def num_residuals(self) -> int:
        pass


class ReprojectionCost(pyceres.CostFunction):
    """
    Pixel error of a known world point.

    Parameter blocks: camera position (3), camera orientation quaternion
    (w, x, y, z) (4), intrinsics [fx, fy, cx, cy] (4).
    """

    def __init__(self, observed: np.ndarray, world_point: np.ndarray) -> None:
        super().__init__()
        self.set_num_residuals(2)
        self.set_parameter_block_sizes([3, 4, 4])
        self.observed = np.asarray(observed, dtype=np.float64).reshape(2)
        self.world_point = np.asarray(world_point, dtype=np.float64).reshape(3)

    def Evaluate(self, parameters, residuals, jacobians):
        position, orientation, intrinsics = parameters
        fx, fy, cx, cy = intrinsics

        R = quaternion_to_rotation(orientation)
        delta = self.world_point - position
        x, y, z = R.T @ delta

        # behind the camera
        if z <= 0:
            return False

        residuals[0] = fx * x / z + cx - self.observed[0]
        residuals[1] = fy * y / z + cy - self.observed[1]

        if jacobians is not None:
            d_proj = np.array(
                [[fx / z, 0.0, -fx * x / z**2], [0.0, fy / z, -fy * y / z**2]]
            )
            if jacobians[0] is not None:
                jacobians[0][:] = (d_proj @ -R.T).ravel()
            if jacobians[1] is not None:
                jacobians[1][:] = (
                    d_proj @ inverse_rotation_jacobian(orientation, delta)
                ).ravel()
            if jacobians[2] is not None:
                jacobians[2][:] = np.array(
                    [[x / z, 0.0, 1.0, 0.0], [0.0, y / z, 0.0, 1.0]]
                ).ravel()

        return True


class CeresProblem(ResidualProblem):
    """ResidualProblem backed by pyceres."""

    def __init__(self, config: LocalizerConfig | None = None) -> None:
        self.config = config or LocalizerConfig()
        self.problem = pyceres.Problem()
        self._residual_blocks = []

    def add_reprojection_residual(self, observed, world_point, position, orientation, intrinsics):
        cost = ReprojectionCost(observed, world_point)
        # a pixel error of 3 is still considered an inlier
        loss = pyceres.CauchyLoss(self.config.cauchy_loss_scale)
        block_id = self.problem.add_residual_block(
            cost, loss, [position, orientation, intrinsics]
        )
        self._residual_blocks.append(block_id)

    def clear_residuals(self):
        for block_id in self._residual_blocks:
            self.problem.remove_residual_block(block_id)
        self._residual_blocks = []

    def set_parameter_upper_bound(self, block, index, value):
        self.problem.set_parameter_upper_bound(block, index, value)

    def set_quaternion_manifold(self, block):
        self.problem.set_manifold(block, pyceres.QuaternionManifold())

    def set_subset_manifold(self, block, constant_indices):
        self.problem.set_manifold(
            block, pyceres.SubsetManifold(len(block), list(constant_indices))
        )

    def set_parameter_block_constant(self, block):
        self.problem.set_parameter_block_constant(block)

    def solve(self) -> SolveSummary:
        options = pyceres.SolverOptions()
        options.linear_solver_type = pyceres.LinearSolverType.DENSE_QR
        options.minimizer_progress_to_stdout = False
        options.max_num_iterations = self.config.max_num_iterations
        options.function_tolerance = self.config.function_tolerance
        options.parameter_tolerance = self.config.parameter_tolerance

        summary = pyceres.SolverSummary()
        pyceres.solve(options, self.problem, summary)

        return SolveSummary(
            converged=summary.termination_type == pyceres.TerminationType.CONVERGENCE,
            usable=summary.IsSolutionUsable(),
            initial_cost=summary.initial_cost,
            final_cost=summary.final_cost,
            message=summary.BriefReport(),
        )

    @property
    def num_residuals(self) -> int:
        return len(self._residual_blocks)
