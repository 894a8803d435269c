"""Event processor that fills cluster shape, occupancy and resolution histograms."""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Callable, Iterable

from .cluster_hists import ClusterHists
from .geometry import Detector, SensorAreas, barrel_area, endcap_area, sensor_areas
from .histogram import Hist1D
from .hits import (
    MCPARTICLE,
    CellIDDecoder,
    Collection,
    Event,
    SimTrackerHit,
    TrackerHit,
    TrackerHitPlane,
    corrected_time,
)
from .pixels import PixelData, local_coordinate, module_index, pixel_hash
from .reso_hists import TrackerHitResoHists

log = logging.getLogger(__name__)

#: Tracker regions: vertex, inner and outer tracker, barrel and endcap.
REGIONS = ("vb", "ve", "ib", "ie", "ob", "oe")
#: Layer-index offset of each region in the occupancy histograms.
LAYER_OFFSETS = {"vb": 0, "ve": 0, "ib": 10, "ie": 10, "ob": 20, "oe": 20}
#: Cap on the raw hits counted per cluster in the hit occupancy histograms.
MAX_HITS_PER_CLUSTER = 30
NUM_PIXEL_LAYERS = 9

_RELATION_ORDER = ("vb", "ve", "ib", "ob", "ie", "oe")
_DECODER = CellIDDecoder()


@dataclass
class ProcessorConfig:
    """Names of the input collections; an empty name disables that input."""

    vb_hits: str = ""
    ib_hits: str = ""
    ob_hits: str = ""
    ve_hits: str = ""
    ie_hits: str = ""
    oe_hits: str = ""
    mc_particles: str = ""
    vb_relations: str = ""
    ib_relations: str = ""
    ob_relations: str = ""
    ve_relations: str = ""
    ie_relations: str = ""
    oe_relations: str = ""
    mu_det: Detector | int = Detector.MUCOL_V1

    def hits_name(self, region: str) -> str:
        return getattr(self, f"{region}_hits")

    def relations_name(self, region: str) -> str:
        return getattr(self, f"{region}_relations")


class ClusterShapeHistProc:
    """Fills histograms for tracker cluster performance studies, event by event."""

    def __init__(self, config: ProcessorConfig | None = None) -> None:
        self.config = config if config is not None else ProcessorConfig()
        self.n_events = 0
        self.all_pixels: dict[int, PixelData] = {}
        self.clusters: dict[str, ClusterHists] = {}
        self.resolution: dict[str, TrackerHitResoHists] = {}
        self.histograms: dict[str, Hist1D] = {}
        self.areas = SensorAreas()
        self._initialised = False

    def _book(self, name: str, title: str, nbins: int, low: float, high: float) -> Hist1D:
        hist = Hist1D(name, title, nbins, low, high)
        self.histograms[name] = hist
        return hist

    def init(self) -> None:
        """Book all histograms and load the sensor areas of the chosen geometry."""
        self.clusters = {}
        self.resolution = {}
        for region in REGIONS:
            self.resolution[region] = TrackerHitResoHists()
            self.clusters[region] = ClusterHists()

        self.histograms = {}
        h = self._book
        self.trackerhit_timing = h(
            "hit_timing", "Time of arrival of hits [ns]", 25000, -5, 20)
        self.clusters_by_blayer = h(
            "numClusters_by_bLayer", ";Barrel Layer Index; Number of Clusters", 30, 0, 30)
        self.hits_by_blayer = h(
            "numhits_by_bLayer", ";Barrel Layer Index; Number of Hits", 30, 0, 30)
        self.clusters_by_blayer_bx = h(
            "numClusters_by_bLayer_BX",
            ";Barrel Layer Index; Number of Clusters / 1 BX", 30, 0, 30)
        self.hits_by_blayer_bx = h(
            "numhits_by_bLayer_BX", ";Barrel Layer Index; Number of Hits / 1 BX", 30, 0, 30)
        self.clusters_by_elayer = h(
            "numClusters_by_eLayer", ";Endcap Layer Index; Number of Clusters", 60, -30, 30)
        self.hits_by_elayer = h(
            "numhits_by_eLayer", ";Endcap Layer Index; Number of Hits", 60, -30, 30)
        self.clusters_by_elayer_bx = h(
            "numClusters_by_eLayer_BX",
            ";Endcap Layer Index; Number of Clusters / 1 BX", 60, -30, 30)
        self.hits_by_elayer_bx = h(
            "numhits_by_eLayer_BX", ";Endcap Layer Index; Number of Hits / 1 BX", 60, -30, 30)
        self.cluster_density_blayer = h(
            "ClusterDensity_bLayer",
            ";Barrel Layer Index; Number of Clusters / 1 BX / cm^2", 30, 0, 30)
        self.cluster_density_elayer = h(
            "ClusterDensity_eLayer",
            ";Endcap Layer Index; Number of Clusters / 1 BX / cm^2", 60, -30, 30)
        self.hit_density_blayer = h(
            "HitDensity_bLayer", ";Barrel Layer Index; Number of Hits / 1 BX / cm^2", 30, 0, 30)
        self.hit_density_elayer = h(
            "HitDensity_eLayer", ";Endcap Layer Index; Number of Hits / 1 BX / cm^2", 60, -30, 30)
        self.in_pix_pu = [
            h(f"Hits_inPixPU_vxbL{i}", ";nHits in same pixel; Total number of hits", 50, 0, 50)
            for i in range(NUM_PIXEL_LAYERS)
        ]
        self.in_pix_pu_time_diff = [
            h(f"Hits_inPixPUTimeDiff_vxbL{i}",
              ";Difference in time of arrival of hits in the same pixel [ns]; "
              "Total number of hits", 1000, -5, 5)
            for i in range(NUM_PIXEL_LAYERS)
        ]
        self.n_events = 0
        self.all_pixels = {}
        self.areas = sensor_areas(self.config.mu_det)
        self._initialised = True

    def _require_init(self) -> None:
        if not self._initialised:
            raise RuntimeError("init() must be called before processing events")

    @staticmethod
    def _optional(event: Event, name: str) -> Collection | None:
        return event.get_collection(name) if name else None

    def process_event(self, event: Event) -> None:
        """Fill all histograms with the hits and relations of one event."""
        self._require_init()
        self.n_events += 1

        mcp = event.get_collection(self.config.mc_particles)
        if mcp.type_name != MCPARTICLE:
            raise TypeError(f"Invalid collection type: {mcp.type_name}")

        hit_collections = {
            region: self._optional(event, self.config.hits_name(region)) for region in REGIONS
        }
        relation_collections = {
            region: self._optional(event, self.config.relations_name(region))
            for region in REGIONS
        }

        self.all_pixels.clear()
        self._fill_clusters("vb", hit_collections["vb"])
        self._fill_pixel_pileup()
        edep_bx = self.clusters["vb"].cluster_edep_bx
        integral = edep_bx.integral()
        if integral != 0.0:
            edep_bx.scale(1.0 / integral)

        for region in ("ve", "ib", "ie", "ob", "oe"):
            self._fill_clusters(region, hit_collections[region])

        for region in _RELATION_ORDER:
            self._fill_resolution(region, relation_collections[region])

    def _fill_clusters(self, region: str, collection: Collection | None) -> None:
        if collection is None:
            return
        offset = LAYER_OFFSETS[region]
        for hit in collection:
            self.trackerhit_timing.fill(corrected_time(hit.time, hit.position))
            log.debug("Filling %s clusters with %s tracker hits", region, region)
            self.clusters[region].fill(hit)
            self.layer_info(hit, offset)

    def _fill_pixel_pileup(self) -> None:
        for pixel in self.all_pixels.values():
            self.in_pix_pu[pixel.layer].fill(len(pixel.hits))
            times = [corrected_time(h.time, h.position) for h in pixel.hits]
            for first, second in itertools.combinations(times, 2):
                self.in_pix_pu_time_diff[pixel.layer].fill(first - second)

    def _fill_resolution(self, region: str, collection: Collection | None) -> None:
        if collection is None:
            return
        for relation in collection:
            hit, sim_hit = relation.from_hit, relation.to_hit
            if not isinstance(hit, TrackerHitPlane) or not isinstance(sim_hit, SimTrackerHit):
                log.warning(
                    "Relation in %s does not link a planar hit to a simulated hit: %r -> %r",
                    region, hit, sim_hit,
                )
                continue
            self.resolution[region].fill(hit, sim_hit)

    def layer_info(self, hit: TrackerHit, offset: int) -> None:
        """Fill the per-layer occupancy histograms and record vertex barrel pixels."""
        self._require_init()
        z = hit.position[2]
        n_raw = len(hit.raw_hits)
        ids = _DECODER.decode(hit.cell_id)
        system, layer = ids["system"], ids["layer"]
        z_dir = 1 if z > 0.0 else -1
        weight = min(n_raw, MAX_HITS_PER_CLUSTER)

        if system % 2 == 0:
            index = z_dir * (layer + 1) + z_dir * offset
            self.clusters_by_elayer.fill(index)
            self.clusters_by_elayer_bx.fill(index)
            self.hits_by_elayer.fill(index, weight)
            self.hits_by_elayer_bx.fill(index, weight)
            self.cluster_density_elayer.fill(index)
            self.hit_density_elayer.fill(index, weight)
        else:
            index = layer + offset
            self.clusters_by_blayer.fill(index)
            self.clusters_by_blayer_bx.fill(index)
            self.hits_by_blayer.fill(index, weight)
            self.hits_by_blayer_bx.fill(index, weight)
            self.cluster_density_blayer.fill(index)
            self.hit_density_blayer.fill(index, weight)

        if system != 1:
            return
        module = module_index(z)
        for raw in hit.raw_hits:
            x_local = local_coordinate(raw.position[0])
            y_local = local_coordinate(raw.position[1])
            ladder = _DECODER.decode(raw.cell_id)["module"]
            key = pixel_hash(x_local, y_local, module, ladder)
            pixel = self.all_pixels.setdefault(key, PixelData())
            if not pixel.hits:
                pixel.layer = layer
            pixel.hits.append(raw)

    def end(self) -> None:
        """Normalise per-crossing histograms and divide densities by sensor area."""
        self._require_init()
        log.info("Total events = %d", self.n_events)
        factor = 1.0 / self.n_events
        for hist in (
            self.clusters_by_blayer_bx, self.hits_by_blayer_bx,
            self.clusters_by_elayer_bx, self.hits_by_elayer_bx,
            self.cluster_density_blayer, self.cluster_density_elayer,
            self.hit_density_blayer, self.hit_density_elayer,
        ):
            hist.scale(factor)

        self._divide_by_area(
            self.clusters_by_blayer_bx,
            (self.cluster_density_blayer, self.hit_density_blayer),
            barrel_area,
        )
        self._divide_by_area(
            self.clusters_by_elayer_bx,
            (self.cluster_density_elayer, self.hit_density_elayer),
            endcap_area,
        )

    def _divide_by_area(
        self,
        counts: Hist1D,
        densities: Iterable[Hist1D],
        area_of: Callable[[SensorAreas, float], float | None],
    ) -> None:
        densities = tuple(densities)
        for ibin in range(1, counts.nbins + 1):
            if not counts.bin_content(ibin) > 0:
                continue
            area = area_of(self.areas, counts.bin_low_edge(ibin))
            if area is None:
                continue
            for hist in densities:
                hist.set_bin_content(ibin, hist.bin_content(ibin) / area)
                hist.set_bin_error(ibin, hist.bin_error(ibin) / area)