"""Position residual, pull and uncertainty histograms for reconstructed hits."""

from __future__ import annotations

import logging
import math

from .histogram import Hist1D
from .hits import SimTrackerHit, TrackerHitPlane

log = logging.getLogger(__name__)


def _ratio(numerator: float, denominator: float) -> float:
    """Floating-point division that yields inf or NaN instead of raising."""
    if denominator == 0.0:
        if numerator == 0.0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)
    return numerator / denominator


class TrackerHitResoHists:
    """Histograms comparing reconstructed planar hits with their truth hits."""

    def __init__(self) -> None:
        self.histograms: dict[str, Hist1D] = {}
        h = self._book
        self.x_pull = h("x_pull", ";(x_{reco} - x_{truth})/#sigma_{x}; Hits", 50, -2, 2)
        self.y_pull = h("y_pull", ";(y_{reco} - y_{truth})/#sigma_{y}; Hits", 50, -2, 2)
        # wide ranges for spotting badly reconstructed hits
        self.dx_wide = h("dx_wide", ";(x_{reco} - x_{truth}) (mm); Hits", 100, -20, 20)
        self.dy_wide = h("dy_wide", ";(y_{reco} - y_{truth}) (mm); Hits", 100, -20, 20)
        self.dz_wide = h("dz_wide", ";(z_{reco} - z_{truth}) (mm); Hits", 100, -20, 20)
        self.dx = h("dx", ";(x_{reco} - x_{truth}) (mm); Hits", 100, -0.03, 0.03)
        self.dy = h("dy", ";(y_{reco} - y_{truth}) (mm); Hits", 100, -0.03, 0.03)
        self.dz = h("dz", ";(z_{reco} - z_{truth}) (mm); Hits", 100, -0.03, 0.03)
        self.dr = h("dr", ";(r_{reco} - r_{truth}) (mm); Hits", 100, -20, 20)
        self.cov_x = h("cov_x", ";X variance; Hits", 50, 0, 0.01)
        self.cov_y = h("cov_y", ";Y variance; Hits", 50, 0, 0.01)
        self.cov_r = h("cov_r", ";r variance; Hits", 50, 0, 0.01)

    def _book(self, name: str, title: str, nbins: int, low: float, high: float) -> Hist1D:
        hist = Hist1D(name, title, nbins, low, high)
        self.histograms[name] = hist
        return hist

    def fill(self, hit: TrackerHitPlane, sim_hit: SimTrackerHit) -> None:
        """Fill residuals of a planar hit against the simulated hit it came from."""
        if not isinstance(hit, TrackerHitPlane):
            raise TypeError(f"expected a TrackerHitPlane, got {type(hit).__name__}")

        x_reco, y_reco, z_reco = hit.position
        x_truth, y_truth, z_truth = sim_hit.position
        dx = x_reco - x_truth
        dy = y_reco - y_truth
        dz = z_reco - z_truth

        if dx == 0.0:
            theta = math.atan2(math.hypot(x_reco, y_reco), z_reco)
            log.debug(
                "x truth = x reco: x truth %s, y truth %s, dy %s, theta %s",
                x_truth, y_truth, dy, theta,
            )

        sigma_x = hit.du
        sigma_y = hit.dv

        delta_r = math.hypot(dx, dy)
        # error propagation of the transverse distance
        sigma_r = _ratio(dx * sigma_x + dy * sigma_y, delta_r)

        self.x_pull.fill(_ratio(dx, sigma_x))
        self.y_pull.fill(_ratio(dy, sigma_y))

        self.dx_wide.fill(dx)
        self.dy_wide.fill(dy)
        self.dz_wide.fill(dz)

        self.dx.fill(dx)
        self.dy.fill(dy)
        self.dz.fill(dz)
        self.dr.fill(delta_r)

        self.cov_x.fill(sigma_x)
        self.cov_y.fill(sigma_y)
        self.cov_r.fill(sigma_r)