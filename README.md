# clustershape

This package fills histograms for studies of clusters in a silicon tracker.
It covers:

- cluster size against polar angle and against radius;
- energy deposition and arrival time;
- cluster and hit occupancy for each layer, including occupancy per bunch
  crossing and per unit of sensor area;
- pile-up inside single vertex-barrel pixels;
- residuals, pulls and uncertainties of reconstructed hit positions against
  simulated truth.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

`clustershape.histogram`
: Provides `Hist1D` and `Hist2D`, histograms with fixed-width bins. Each axis
  has an underflow bin (index 0) and an overflow bin (index `nbins + 1`).
  The classes support:
  - weighted `fill`, which returns the bin it filled;
  - `find_bin`, `bin_content` and `bin_error`;
  - `set_bin_content` and `set_bin_error` on `Hist1D`;
  - `bin_low_edge` on `Hist1D`;
  - `integral`, which covers in-range bins only;
  - `scale`.

  A bin index outside the range raises `IndexError`.

`clustershape.hits`
: Holds the event model: `SimTrackerHit`, `TrackerHit`, `TrackerHitPlane`
  (which adds `du` and `dv`), `Relation`, `Collection` and `Event`.
  `Event.get_collection` raises `KeyError` when no collection has the given
  name.
  - `CellIDDecoder` packs and unpacks named bit fields of a 64-bit cell ID.
    By default it uses `TRACKER_ENCODING`, which is
    `system:5,side:-2,layer:6,module:11,sensor:8`.
  - `corrected_time(hit_time, position)` subtracts the light travel time
    from the origin, in mm and ns.

`clustershape.cluster_hists`
: `ClusterHists` holds the cluster histograms for one tracker region. These
  cover cluster size against theta and against R (overall and per layer),
  position, energy deposition, timing and per-layer counts.
  - `fill(hit)` adds one `TrackerHit` together with its raw hits.
  - Every histogram is also available by name in `histograms`.

`clustershape.reso_hists`
: `TrackerHitResoHists` holds residual, pull and uncertainty histograms.
  - `fill(hit, sim_hit)` takes a `TrackerHitPlane` and its `SimTrackerHit`.
  - Any other kind of hit raises `TypeError`.

`clustershape.geometry`
: Describes the sensor areas of each geometry.
  - `Detector` names the geometries: `MUCOL_V1`, `MAIA_V0` and `MUSIC_V2`.
  - `sensor_areas(detector)` gives the active area of each layer for the
    vertex, inner and outer barrels and endcaps.
  - `barrel_area` and `endcap_area` map a layer-index bin edge to that area.

`clustershape.pixels`
: Helpers for in-pixel pile-up: `local_coordinate`, `module_index`,
  `pixel_hash` and the `PixelData` record.

`clustershape.processor`
: `ClusterShapeHistProc` runs the whole analysis. It is configured by a
  `ProcessorConfig`.

## Usage

```python
from clustershape.hits import (
    MCPARTICLE, TRACKERHIT, CellIDDecoder, Collection, Event,
    SimTrackerHit, TrackerHit,
)
from clustershape.processor import ClusterShapeHistProc, ProcessorConfig
from clustershape.geometry import Detector

decoder = CellIDDecoder()
cell_id = decoder.encode({"system": 1, "layer": 0})
hit = TrackerHit(
    position=(30.0, 0.0, 10.0),
    time=0.1,
    edep=1e-4,
    cell_id=cell_id,
    raw_hits=[SimTrackerHit(position=(5.0, 7.0, 0.0), cell_id=cell_id)],
)
event = Event(collections={
    "MCParticle": Collection(MCPARTICLE),
    "VBTrackerHits": Collection(TRACKERHIT, [hit]),
})

config = ProcessorConfig(
    mc_particles="MCParticle",
    vb_hits="VBTrackerHits",
    mu_det=Detector.MUCOL_V1,
)
proc = ClusterShapeHistProc(config)
proc.init()
proc.process_event(event)
proc.end()

print(proc.clusters_by_blayer.bin_content(1))
print(proc.clusters["vb"].theta.integral())
```

### Collections

`ProcessorConfig` has one name for each region's hits (`vb_hits`,
`ve_hits`, `ib_hits`, `ie_hits`, `ob_hits`, `oe_hits`). It has one name for
each region's hit-to-truth relations (`vb_relations` and so on). It also
has `mc_particles` and `mu_det`.

- A hit or relation collection with an empty name is skipped.
- The MC particle collection is always looked up. If it is missing,
  `process_event` raises `KeyError`. If it is not of type `MCParticle`,
  `process_event` raises `TypeError`.
- A relation that does not link a `TrackerHitPlane` to a `SimTrackerHit` is
  logged as a warning and skipped.

### Order of calls

Call `init()` before `process_event`, `layer_info` or `end`. Calling any of
them first raises `RuntimeError`.

`end()` does the following:
1. It divides the per-bunch-crossing and density histograms by the number
   of events.
2. It divides the density histograms by the sensor area of each layer.

If no events were processed, `end()` raises `ZeroDivisionError`.

### Where the histograms are

The processor's own histograms are attributes such as
`clusters_by_blayer` and `hit_density_elayer`, and are also held in
`proc.histograms`. The per-region histograms are in `proc.clusters[region]`
and `proc.resolution[region]`, where `region` is one of `vb`, `ve`, `ib`,
`ie`, `ob` or `oe`.

## What this package does not do

- It has no command-line program.
- It does not read event files. Events are built as `Event` objects by the
  caller.
- It does not write histograms to disk or draw them. Filled histograms stay
  in memory and are read through their methods.