import numpy as np
import pytest

from contactview import config
from contactview.model import CategorySet, ChainBundle, InteractionCategory, RenderParams, ShowAll
from contactview.model.classifier import CATEGORY_COLORS
from contactview.model.state import Thresholds
from contactview.model.matrix import build_distance_matrix
from contactview.services.heatmap import contact_cells, render_heatmap, resolve_cell
from contactview.services.palette import hex_to_rgba, theme_rgba


def make_structure(xs, names=None, chains=None):
    """Residues on the x axis; ``chains`` splits them into consecutive bundles."""

    names = names or ["ALA"] * len(xs)
    chains = chains or ["A"] * len(xs)
    bundles = []
    for idx, x in enumerate(xs):
        if not bundles or bundles[-1].chain != chains[idx]:
            bundles.append(ChainBundle(x=[], y=[], z=[], labels=[], chain=chains[idx]))
        bundle = bundles[-1]
        bundle.x.append(float(x))
        bundle.y.append(0.0)
        bundle.z.append(0.0)
        bundle.labels.append(f"{names[idx]} {idx + 1}")
    return build_distance_matrix(bundles)


def cell_pixel(raster, row, col, scale):
    return tuple(raster[row * scale + scale // 2, col * scale + scale // 2])


def test_raster_shape_and_determinism():
    residues, matrix = make_structure([0, 5, 30, 15])
    params = RenderParams(scale=4)
    first = render_heatmap(matrix, residues, params)
    second = render_heatmap(matrix, residues, params)
    assert first.shape == (16, 16, 4)
    assert first.dtype == np.uint8
    assert np.array_equal(first, second)


def test_show_all_buckets():
    residues, matrix = make_structure([0, 5, 30, 15])
    params = RenderParams(scale=4)
    raster = render_heatmap(matrix, residues, params)
    close = theme_rgba("dark", "close")
    proximal = theme_rgba("dark", "proximal")
    background = theme_rgba("dark", "background")

    assert cell_pixel(raster, 0, 1, 4) == close
    assert cell_pixel(raster, 1, 0, 4) == close
    assert cell_pixel(raster, 1, 3, 4) == proximal
    assert cell_pixel(raster, 3, 1, 4) == proximal
    assert cell_pixel(raster, 0, 2, 4) == background
    assert cell_pixel(raster, 2, 2, 4) == close


def test_thresholds_move_bucket_edges():
    residues, matrix = make_structure([0, 5, 30, 15])
    params = RenderParams(scale=2)
    indices, _ = contact_cells(matrix, residues, params)
    assert indices[1, 3] == 2

    tighter = RenderParams(scale=2, thresholds=Thresholds(contact=11.0, proximal=12.0))
    indices, _ = contact_cells(matrix, residues, tighter)
    assert indices[1, 3] == 1


def test_contact_above_proximal_leaves_proximal_bucket_empty():
    residues, matrix = make_structure([0, 5, 30, 15])
    params = RenderParams(thresholds=Thresholds(contact=12.0, proximal=6.0))
    indices, _ = contact_cells(matrix, residues, params)
    assert not np.any(indices == 2)
    assert indices[0, 1] == 1
    assert indices[1, 3] == 0


def test_intra_chain_toggle():
    residues, matrix = make_structure([0, 5, 50, 53], chains=["A", "A", "B", "B"])
    hidden = RenderParams(scale=2, show_intra_chain=False)
    indices, _ = contact_cells(matrix, residues, hidden)
    assert indices[0, 1] == 0
    assert indices[2, 3] == 0

    residues, matrix = make_structure([0, 5], chains=["A", "B"])
    indices, _ = contact_cells(matrix, residues, hidden)
    assert indices[0, 1] == 1
    assert indices[1, 0] == 1
    assert indices[0, 0] == 0


def test_category_filter_shows_only_enabled_categories():
    residues, matrix = make_structure(
        [0, 3, 100, 104], names=["ARG", "ASP", "LEU", "VAL"]
    )
    salt = RenderParams(scale=3, filters=CategorySet.of(["Salt Bridge"]))
    raster = render_heatmap(matrix, residues, salt)
    assert cell_pixel(raster, 0, 1, 3) == hex_to_rgba(CATEGORY_COLORS[InteractionCategory.SALT_BRIDGE])
    assert cell_pixel(raster, 2, 3, 3) == theme_rgba("dark", "background")

    hydrophobic = RenderParams(scale=3, filters=CategorySet.of([InteractionCategory.HYDROPHOBIC]))
    raster = render_heatmap(matrix, residues, hydrophobic)
    assert cell_pixel(raster, 3, 2, 3) == hex_to_rgba(CATEGORY_COLORS[InteractionCategory.HYDROPHOBIC])
    assert cell_pixel(raster, 0, 1, 3) == theme_rgba("dark", "background")


def test_show_all_and_category_filter_differ():
    residues, matrix = make_structure([0, 3, 100, 104], names=["ARG", "ASP", "LEU", "VAL"])
    everything = render_heatmap(matrix, residues, RenderParams(filters=ShowAll()))
    filtered = render_heatmap(
        matrix, residues, RenderParams(filters=CategorySet.of(["Pi-Stacking"]))
    )
    assert not np.array_equal(everything, filtered)


def test_chain_separator_drawn_at_boundary():
    residues, matrix = make_structure([0, 50, 100, 150], chains=["A", "A", "B", "B"])
    raster = render_heatmap(matrix, residues, RenderParams(scale=4))
    assert tuple(raster[1, 8]) == theme_rgba("dark", "chain_separator")
    assert tuple(raster[8, 1]) == theme_rgba("dark", "chain_separator")


def test_gridlines_toggle():
    xs = [idx * 50.0 for idx in range(30)]
    residues, matrix = make_structure(xs)
    grid_x = config.GRID_STEP * 2
    raster = render_heatmap(matrix, residues, RenderParams(scale=2))
    assert tuple(raster[1, grid_x]) == theme_rgba("dark", "grid")
    raster = render_heatmap(matrix, residues, RenderParams(scale=2, show_grid=False))
    assert tuple(raster[1, grid_x]) == theme_rgba("dark", "background")


def test_light_theme_palette():
    residues, matrix = make_structure([0, 5])
    raster = render_heatmap(matrix, residues, RenderParams(scale=2, theme="light"))
    assert cell_pixel(raster, 0, 1, 2) == theme_rgba("light", "close")


@pytest.mark.parametrize("scale", [1, 3, 7])
def test_resolve_cell_inverts_cell_centres(scale):
    n = 9
    for row in range(n):
        for col in range(n):
            px = col * scale + scale / 2.0
            py = row * scale + scale / 2.0
            assert resolve_cell(px, py, scale, n) == (row, col)


def test_resolve_cell_outside_map():
    assert resolve_cell(-1, 0, 4, 5) is None
    assert resolve_cell(0, 20, 4, 5) is None
    assert resolve_cell(19.9, 19.9, 4, 5) == (4, 4)
