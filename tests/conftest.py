import pytest


def pdb_atom_line(serial, name, resname, chain, resid, x, y, z, element):
    return (
        f"ATOM  {serial:5d}  {name:<3s} {resname:3s} {chain:1s}{resid:4d}    "
        f"{x:8.3f}{y:8.3f}{z:8.3f}{1.0:6.2f}{0.0:6.2f}          {element:>2s}"
    )


def write_pdb(path, atoms):
    lines = [
        pdb_atom_line(serial, *atom) for serial, atom in enumerate(atoms, start=1)
    ]
    lines.append("END")
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def ca_pdb(tmp_path):
    """C-alpha only PDB with chain A (ALA 1-4) and chain B (ARG/ASP 10-12)."""

    residues = [
        ("ALA", "A", 1, 0.0, 0.0),
        ("GLY", "A", 2, 3.8, 0.0),
        ("LEU", "A", 3, 7.6, 0.0),
        ("ALA", "A", 4, 11.4, 0.0),
        ("ARG", "B", 10, 0.0, 6.0),
        ("ASP", "B", 11, 3.8, 6.0),
        ("LYS", "B", 12, 7.6, 6.0),
    ]
    atoms = [
        ("CA", resname, chain, resid, x, y, 0.0, "C")
        for resname, chain, resid, x, y in residues
    ]
    return write_pdb(tmp_path / "ca_only.pdb", atoms)


@pytest.fixture
def backbone_pdb(tmp_path):
    """Single extended strand of eight ALA residues with N, CA, C and O atoms.

    Consecutive residues are 3.8 A apart along x, so no backbone hydrogen bonds
    form and every residue is coil.
    """

    atoms = []
    for idx in range(8):
        x0 = 3.8 * idx
        resid = idx + 1
        atoms.extend(
            [
                ("N", "ALA", "A", resid, x0, 0.0, 0.0, "N"),
                ("CA", "ALA", "A", resid, x0 + 1.2, 0.9, 0.0, "C"),
                ("C", "ALA", "A", resid, x0 + 2.6, 0.4, 0.0, "C"),
                ("O", "ALA", "A", resid, x0 + 2.9, -0.8, 0.0, "O"),
            ]
        )
    return write_pdb(tmp_path / "backbone.pdb", atoms)
