import math

import pytest

from clustershape.geometry import Detector, sensor_areas
from clustershape.hits import (
    LCRELATION,
    MCPARTICLE,
    TRACKERHIT,
    CellIDDecoder,
    Collection,
    Event,
    Relation,
    SimTrackerHit,
    TrackerHit,
    TrackerHitPlane,
)
from clustershape.processor import REGIONS, ClusterShapeHistProc, ProcessorConfig

DECODER = CellIDDecoder()


def cell(system, layer, module=0):
    return DECODER.encode({"system": system, "layer": layer, "module": module})


def raw(x, y, time=0.0, module=0):
    return SimTrackerHit(position=(x, y, 0.0), time=time, edep=100.0,
                         cell_id=cell(1, 0, module))


def cluster(system, layer, z=10.0, raws=None, cls=TrackerHit, **extra):
    return cls(position=(30.0, 0.0, z), time=0.0, edep=1e-4,
               cell_id=cell(system, layer), raw_hits=list(raws or [raw(1.0, 1.0)]), **extra)


def full_config(mu_det=Detector.MUCOL_V1):
    names = {f"{r}_hits": r.upper() for r in REGIONS}
    names.update({f"{r}_relations": r.upper() + "Rel" for r in REGIONS})
    return ProcessorConfig(mc_particles="MCP", mu_det=mu_det, **names)


def make_event(hits=None, relations=None, mcp_type=MCPARTICLE):
    hits = hits or {}
    relations = relations or {}
    cols = {"MCP": Collection(mcp_type)}
    for r in REGIONS:
        cols[r.upper()] = Collection(TRACKERHIT, list(hits.get(r, [])))
        cols[r.upper() + "Rel"] = Collection(LCRELATION, list(relations.get(r, [])))
    return Event(cols)


@pytest.fixture
def proc():
    p = ClusterShapeHistProc(full_config())
    p.init()
    return p


def test_process_before_init_raises():
    p = ClusterShapeHistProc(full_config())
    with pytest.raises(RuntimeError):
        p.process_event(make_event())


def test_missing_mc_collection_raises():
    p = ClusterShapeHistProc(ProcessorConfig(mc_particles="MCP"))
    p.init()
    with pytest.raises(KeyError):
        p.process_event(Event())


def test_wrong_mc_type_raises(proc):
    with pytest.raises(TypeError, match="Invalid collection type"):
        proc.process_event(make_event(mcp_type=TRACKERHIT))


def test_empty_names_skip_inputs():
    p = ClusterShapeHistProc(ProcessorConfig(mc_particles="MCP"))
    p.init()
    p.process_event(Event({"MCP": Collection(MCPARTICLE)}))
    assert p.n_events == 1
    assert p.trackerhit_timing.entries == 0


def test_barrel_hit_fills_layer_bins(proc):
    raws = [raw(float(i), 2.0) for i in range(1, 4)]
    proc.process_event(make_event({"vb": [cluster(1, 2, raws=raws)]}))
    ibin = proc.clusters_by_blayer.find_bin(2)
    assert proc.clusters_by_blayer.bin_content(ibin) == 1.0
    assert proc.hits_by_blayer.bin_content(ibin) == 3.0
    assert proc.trackerhit_timing.entries == 1
    assert proc.clusters["vb"].clusters_by_layer.entries == 1


def test_hit_weight_is_capped(proc):
    raws = [raw(float(i + 1), 1.0) for i in range(35)]
    proc.process_event(make_event({"vb": [cluster(1, 0, raws=raws)]}))
    ibin = proc.hits_by_blayer.find_bin(0)
    assert proc.hits_by_blayer.bin_content(ibin) == 30.0


def test_inner_barrel_offset(proc):
    proc.process_event(make_event({"ib": [cluster(3, 1)]}))
    assert proc.clusters_by_blayer.bin_content(proc.clusters_by_blayer.find_bin(11)) == 1.0
    assert proc.clusters["ib"].sys_id.entries == 1


def test_endcap_index_sign_and_offset(proc):
    proc.process_event(make_event({
        "ie": [cluster(2, 0, z=-50.0)],
        "oe": [cluster(4, 2, z=50.0)],
    }))
    h = proc.clusters_by_elayer
    assert h.bin_content(h.find_bin(-11)) == 1.0
    assert h.bin_content(h.find_bin(23)) == 1.0
    assert h.integral() == 2.0


def test_pixel_pileup_same_pixel(proc):
    raws = [raw(5.0, 7.0, time=0.1), raw(5.0, 7.0, time=0.3)]
    proc.process_event(make_event({"vb": [cluster(1, 3, raws=raws)]}))
    assert len(proc.all_pixels) == 1
    (pixel,) = proc.all_pixels.values()
    assert pixel.layer == 3
    pu = proc.in_pix_pu[3]
    assert pu.bin_content(pu.find_bin(2)) == 1.0
    diff = proc.in_pix_pu_time_diff[3]
    assert diff.entries == 1
    assert diff.bin_content(diff.find_bin(0.1 - 0.3)) == 1.0


def test_pixel_pileup_distinct_pixels(proc):
    raws = [raw(5.0, 7.0), raw(6.0, 7.0)]
    proc.process_event(make_event({"vb": [cluster(1, 0, raws=raws)]}))
    assert len(proc.all_pixels) == 2
    pu = proc.in_pix_pu[0]
    assert pu.bin_content(pu.find_bin(1)) == 2.0
    assert proc.in_pix_pu_time_diff[0].entries == 0


def test_endcap_hits_do_not_record_pixels(proc):
    proc.process_event(make_event({"ve": [cluster(2, 0)]}))
    assert proc.all_pixels == {}


def test_vb_edep_bx_is_normalised(proc):
    proc.process_event(make_event({"vb": [cluster(1, 0), cluster(1, 1)]}))
    assert proc.clusters["vb"].cluster_edep_bx.integral() == pytest.approx(1.0)
    assert proc.clusters["vb"].cluster_edep.integral() == 2.0


def test_resolution_needs_planar_hit(proc):
    sim = SimTrackerHit(position=(30.0, 0.0, 10.0))
    plain = cluster(1, 0)
    plane = cluster(1, 0, cls=TrackerHitPlane, du=0.005, dv=0.005)
    proc.process_event(make_event(relations={
        "vb": [Relation(plain, sim), Relation(plane, sim)],
        "oe": [Relation(plane, "not a hit")],
    }))
    assert proc.resolution["vb"].dx.entries == 1
    assert proc.resolution["oe"].dx.entries == 0


def test_end_scales_per_event_and_divides_by_area(proc):
    for _ in range(2):
        proc.process_event(make_event({"vb": [cluster(1, 2)]}))
    proc.end()
    ibin = proc.clusters_by_blayer_bx.find_bin(2)
    assert proc.clusters_by_blayer_bx.bin_content(ibin) == pytest.approx(1.0)
    area = sensor_areas(Detector.MUCOL_V1).vxb[2]
    density = proc.cluster_density_blayer
    assert density.bin_content(ibin) == pytest.approx(1.0 / area)
    counts = proc.clusters_by_blayer_bx
    assert density.bin_content(ibin) / density.bin_error(ibin) == pytest.approx(
        counts.bin_content(ibin) / counts.bin_error(ibin))
    assert proc.clusters_by_blayer.bin_content(ibin) == 2.0


def test_end_endcap_density(proc):
    proc.process_event(make_event({"ve": [cluster(2, 0, z=40.0)]}))
    proc.end()
    ibin = proc.cluster_density_elayer.find_bin(1)
    area = sensor_areas(Detector.MUCOL_V1).vxe[0]
    assert proc.cluster_density_elayer.bin_content(ibin) == pytest.approx(1.0 / area)
    assert math.isclose(proc.hit_density_elayer.bin_content(ibin), 1.0 / area)


def test_end_without_events_raises(proc):
    with pytest.raises(ZeroDivisionError):
        proc.end()


def test_end_unknown_layer_area_raises():
    p = ClusterShapeHistProc(full_config(Detector.MUSIC_V2))
    p.init()
    p.process_event(make_event({"vb": [cluster(1, 1)]}))
    with pytest.raises(KeyError):
        p.end()


def test_init_resets_counters(proc):
    proc.process_event(make_event({"vb": [cluster(1, 0)]}))
    proc.init()
    assert proc.n_events == 0
    assert proc.clusters_by_blayer.entries == 0