"""Cluster shape, position and timing histograms for one tracker region."""

from __future__ import annotations

import math
import logging

from .histogram import Hist1D, Hist2D
from .hits import CellIDDecoder, TrackerHit, corrected_time

log = logging.getLogger(__name__)

NUM_LAYERS = 9

_DECODER = CellIDDecoder()
_SIZE_TITLE = ";Cluster #theta; Cluster size"
_R_SIZE_TITLE = ";Cluster R (x^2+y^2)^(1/2) (mm); Cluster size"
_THETA_SIZE = (100, 0.0, 3.14, 31, -0.5, 30.5)
_R_SIZE = (100, 20.0, 120.0, 31, -0.5, 30.5)
_POSITION = (100, -500.0, 500.0, 100, 0.0, 200.0)

# Full-detector position ranges
_NBINS_Z, _NBINS_R = 1000, 800
_RMIN, _RMAX, _ZMIN, _ZMAX = 0.0, 1600.0, -2500.0, 2500.0
# Vertex-detector position ranges
_NBINS_VX = 500
_RMIN_VX, _RMAX_VX, _ZMIN_VX, _ZMAX_VX = 0.0, 120.0, -300.0, 300.0


def _incident_theta(r: float, z: float) -> float:
    """Polar angle from atan(r/z), folded into [0, pi]."""
    if z == 0.0:
        ratio = math.copysign(math.inf, z) if r > 0 else math.nan
    else:
        ratio = r / z
    theta = math.atan(ratio)
    return theta + math.pi if theta < 0 else theta


class ClusterHists:
    """Histograms filled once per reconstructed cluster."""

    def __init__(self) -> None:
        self.histograms: dict[str, Hist1D | Hist2D] = {}
        h1, h2 = self._book1, self._book2

        self.size_theta_y = h2("cluster_size_vs_theta_y", _SIZE_TITLE, *_THETA_SIZE)
        self.size_theta_x = h2("cluster_size_vs_theta_x", _SIZE_TITLE, *_THETA_SIZE)
        self.size_theta_tot = h2("cluster_size_vs_theta_tot", _SIZE_TITLE, *_THETA_SIZE)
        self.size_theta_tot_layer: list[Hist2D] = []
        self.size_theta_x_layer: list[Hist2D] = []
        self.size_theta_y_layer: list[Hist2D] = []
        self.cluster_layer: list[Hist1D] = []
        self.hits_layer: list[Hist1D] = []
        for i in range(NUM_LAYERS):
            self.size_theta_tot_layer.append(
                h2(f"cluster_size_vs_theta_tot_layer{i}", _SIZE_TITLE, *_THETA_SIZE))
            self.size_theta_x_layer.append(
                h2(f"cluster_size_vs_theta_x_layer{i}", _SIZE_TITLE, *_THETA_SIZE))
            self.size_theta_y_layer.append(
                h2(f"cluster_size_vs_theta_y_layer{i}", _SIZE_TITLE, *_THETA_SIZE))
            self.cluster_layer.append(
                h1(f"nClusters_layer{i}", ";Number of Hits / Cluster; Entries", 50, 0, 50))
            self.hits_layer.append(
                h1(f"nHits_layer{i}", ";Total number of hits; Entries", 50, 0, 50))

        self.size_r_tot = h2("cluster_size_vs_R_tot", _R_SIZE_TITLE, *_R_SIZE)
        self.size_r_tot_region = [
            h2(f"cluster_size_vs_R_tot_{i}", _R_SIZE_TITLE, *_R_SIZE) for i in range(4)
        ]
        self.cluster_pos = h2("cluster_position", ";z; r", *_POSITION)
        self.cluster_pos_region = [
            h2(f"cluster_position_{i}", ";z; r", *_POSITION) for i in range(4)
        ]
        self.clusters_by_layer = h1(
            "numClusters_by_layer", ";Layer Index; Number of Clusters", 8, 0, 8)
        self.hits_by_layer = h1("numhits_by_layer", ";Layer Index; Number of Hits", 8, 0, 8)
        self.theta = h1("theta", ";Theta;Number of Clusters", 100, 0, 3.15)
        self.cluster_edep = h1(
            "Clusters_edep", ";Energy Deposited (GeV);Clusters", 100, 0, 0.0005)
        self.cluster_edep_bx = h1(
            "Clusters_edep_BX", ";Energy Deposited (GeV);Clusters/BX", 100, 0, 0.0005)
        self.hit_edep = h1("Hits_edep", ";Deposited charge (electrons);Hits", 5000, 0, 50000)
        self.edep_r = h2(
            "edep_vs_r", ";Cluster R (x^2+y^2)^(1/2) (mm); Energy Deposited (GeV)",
            100, 20, 120, 100, 0, 0.002)
        self.edep_cluster = h2(
            "edep_vs_cluster_size", "; Energy Deposited (GeV); Total Cluster Size",
            100, 0, 0.002, 100, -0.5, 99.5)
        self.avg_hits = h1("nHitsperCluster", ";Number of Hits / Cluster; Clusters", 20, 0, 20)
        self.sys_id = h1("systemID", ";System ID; Number of Clusters", 20, 0, 20)
        self.cluster_timing = h1(
            "cluster_timing", "Time of arrival of clusters [ns]", 200, -1, 1)
        self.hit_timing = h1("hit_timing", "Time of arrival of hits [ns]", 200, -1, 1)

        self.x = h1("x  ", ";x   ; Num Hits", _NBINS_R, -_RMAX, _RMAX)
        self.y = h1("y  ", ";y   ; Num Hits", _NBINS_R, -_RMAX, _RMAX)
        self.z = h1("z  ", ";z   ; Num Hits", 5000, _ZMIN, _ZMAX)
        self.r = h1("r  ", ";r   ; Num Hits", _NBINS_R, _RMIN, _RMAX)
        self.z_r = h2("z_r", ";z_r ; r", _NBINS_Z, _ZMIN, _ZMAX, _NBINS_R, _RMIN, _RMAX)
        self.x_y = h2("x_y", ";x_y ; r", _NBINS_R, -_RMAX, _RMAX, _NBINS_R, -_RMAX, _RMAX)
        self.z_r_hits = h2(
            "z_r_hits", ";z_r ; r", _NBINS_Z, _ZMIN, _ZMAX, _NBINS_Z, _RMIN, _RMAX)
        self.x_y_hits = h2(
            "x_y_hits", ";x_y ; r", _NBINS_R, -_RMAX, _RMAX, _NBINS_R, -_RMAX, _RMAX)
        self.z_layer = [
            h1(f"hits_vs_z_layer{i}", ";z   ; Num Hits", _NBINS_Z, _ZMIN, _ZMAX)
            for i in range(NUM_LAYERS)
        ]
        self.r_layer = [
            h1(f"hits_vs_r_layer{i}", ";r   ; Num Hits", _NBINS_R, _RMIN, _RMAX)
            for i in range(NUM_LAYERS)
        ]

        self.x_vx = h1("x_vx  ", ";x   ; Num Hits", _NBINS_VX, -_RMAX_VX, _RMAX_VX)
        self.y_vx = h1("y_vx  ", ";y   ; Num Hits", _NBINS_VX, -_RMAX_VX, _RMAX_VX)
        self.z_vx = h1("z_vx  ", ";z   ; Num Hits", _NBINS_VX, _ZMIN_VX, _ZMAX_VX)
        self.r_vx = h1("r_vx  ", ";r   ; Num Hits", _NBINS_VX, _RMIN_VX, _RMAX_VX)
        self.z_r_vx = h2("z_r_vx", ";z_r ; r", _NBINS_VX // 10, _ZMIN_VX, _ZMAX_VX,
                         _NBINS_VX // 10, _RMIN_VX, _RMAX_VX)
        self.x_y_vx = h2("x_y_vx", ";x_y ; r", _NBINS_VX, -_RMAX_VX, _RMAX_VX,
                         _NBINS_VX, -_RMAX_VX, _RMAX_VX)

    def _book1(self, name, title, nbins, low, high) -> Hist1D:
        hist = Hist1D(name, title, nbins, low, high)
        self.histograms[name] = hist
        return hist

    def _book2(self, name, title, nx, xlow, xhigh, ny, ylow, yhigh) -> Hist2D:
        hist = Hist2D(name, title, nx, xlow, xhigh, ny, ylow, yhigh)
        self.histograms[name] = hist
        return hist

    def fill(self, hit: TrackerHit) -> None:
        """Fill every histogram with one cluster and its raw hits."""
        edep = hit.edep
        x, y, z = hit.position
        r = math.hypot(x, y)
        theta = _incident_theta(r, z)
        log.debug("Theta: %s", theta)

        self.cluster_timing.fill(corrected_time(hit.time, hit.position))

        ymax = xmax = -1000000.0
        ymin = xmin = 1000000.0
        for raw in hit.raw_hits:
            self.hit_edep.fill(raw.edep)
            self.hit_timing.fill(corrected_time(raw.time, raw.position))
            x_local, y_local = raw.position[0], raw.position[1]
            ymin, ymax = min(ymin, y_local), max(ymax, y_local)
            xmin, xmax = min(xmin, x_local), max(xmax, x_local)

        size_y = (ymax - ymin) + 1
        size_x = (xmax - xmin) + 1
        n_raw = len(hit.raw_hits)
        size_tot = float(n_raw)
        log.debug("Cluster size x=%s y=%s total=%s", size_x, size_y, size_tot)

        ids = _DECODER.decode(hit.cell_id)
        system, layer = ids["system"], ids["layer"]
        if layer >= NUM_LAYERS:
            raise IndexError(f"layer {layer} outside 0..{NUM_LAYERS - 1}")
        self.sys_id.fill(system)

        self.size_theta_y.fill(theta, size_y)
        self.size_theta_x.fill(theta, size_x)
        self.size_theta_tot.fill(theta, size_tot)
        self.size_r_tot.fill(r, size_tot)

        self.theta.fill(theta)
        self.cluster_pos.fill(z, r)
        self.clusters_by_layer.fill(layer)
        self.avg_hits.fill(size_tot)

        self.x.fill(x)
        self.y.fill(y)
        self.z.fill(z)
        self.r.fill(r)
        self.z_r.fill(z, r)
        self.x_y.fill(x, y)
        self.cluster_layer[layer].fill(n_raw)

        for _ in range(n_raw):
            self.hits_by_layer.fill(layer)
            self.z_r_hits.fill(z, r)
            self.x_y_hits.fill(x, y)
            self.z_layer[layer].fill(z)
            self.r_layer[layer].fill(r)
            self.hits_layer[layer].fill(n_raw)
            self.size_theta_tot_layer[layer].fill(theta, size_tot)
            self.size_theta_x_layer[layer].fill(theta, size_x)
            self.size_theta_y_layer[layer].fill(theta, size_y)

        self.x_vx.fill(x)
        self.y_vx.fill(y)
        self.z_vx.fill(z)
        self.r_vx.fill(r)
        self.z_r_vx.fill(z, r)
        self.x_y_vx.fill(x, y)

        self.cluster_edep.fill(edep)
        self.cluster_edep_bx.fill(edep)
        self.edep_r.fill(r, edep)
        self.edep_cluster.fill(edep, size_tot)

        # double-layer regions: layers 0-1, 2-3, 4-5, 6-7
        if layer < 8:
            region = layer // 2
            self.cluster_pos_region[region].fill(z, r)
            self.size_r_tot_region[region].fill(r, size_tot)