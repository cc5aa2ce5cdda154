"""NASA7 data (GRI-Mech 3.0) shared by the test modules."""

from blendkin.models import NASA7, Species

_NASA = {
    "H2": (
        2.016,
        [2.34433112, 7.98052075e-03, -1.94781510e-05, 2.01572094e-08, -7.37611761e-12, -917.935173, 0.683010238],
        [3.33727920, -4.94024731e-05, 4.99456778e-07, -1.79566394e-10, 2.00255376e-14, -950.158922, -3.20502331],
    ),
    "H": (
        1.008,
        [2.5, 7.05332819e-13, -1.99591964e-15, 2.30081632e-18, -9.27732332e-22, 25473.6599, -0.446682853],
        [2.50000001, -2.30842973e-11, 1.61561948e-14, -4.73515235e-18, 4.98197357e-22, 25473.6599, -0.446682914],
    ),
    "O": (
        15.999,
        [3.16826710, -3.27931884e-03, 6.64306396e-06, -6.12806624e-09, 2.11265971e-12, 29122.2592, 2.05193346],
        [2.56942078, -8.59741137e-05, 4.19484589e-08, -1.00177799e-11, 1.22833691e-15, 29217.5791, 4.78433864],
    ),
    "O2": (
        31.998,
        [3.78245636, -2.99673416e-03, 9.84730201e-06, -9.68129509e-09, 3.24372837e-12, -1063.94356, 3.65767573],
        [3.28253784, 1.48308754e-03, -7.57966669e-07, 2.09470555e-10, -2.16717794e-14, -1088.45772, 5.45323129],
    ),
    "OH": (
        17.007,
        [3.99201543, -2.40131752e-03, 4.61793841e-06, -3.88113333e-09, 1.36411470e-12, 3615.08056, -0.103925458],
        [3.09288767, 5.48429716e-04, 1.26505228e-07, -8.79461556e-11, 1.17412376e-14, 3858.657, 4.47669610],
    ),
    "H2O": (
        18.015,
        [4.19864056, -2.03643410e-03, 6.52040211e-06, -5.48797062e-09, 1.77197817e-12, -30293.7267, -0.849032208],
        [3.03399249, 2.17691804e-03, -1.64072518e-07, -9.70419870e-11, 1.68200992e-14, -30004.2971, 4.96677010],
    ),
    "HO2": (
        33.006,
        [4.30179801, -4.74912051e-03, 2.11582891e-05, -2.42763894e-08, 9.29225124e-12, 294.80804, 3.71666245],
        [4.01721090, 2.23982013e-03, -6.33658150e-07, 1.14246370e-10, -1.07908535e-14, 111.856713, 3.78510215],
    ),
    "H2O2": (
        34.014,
        [4.27611269, -5.42822417e-04, 1.67335701e-05, -2.15770813e-08, 8.62454363e-12, -17702.5821, 3.43505074],
        [4.16500285, 4.90831694e-03, -1.90139225e-06, 3.71185986e-10, -2.87908305e-14, -17861.7877, 2.91615662],
    ),
    "N2": (
        28.014,
        [3.298677, 1.4082404e-03, -3.963222e-06, 5.641515e-09, -2.444854e-12, -1020.8999, 3.950372],
        [2.92664, 1.4879768e-03, -5.68476e-07, 1.0097038e-10, -6.753351e-15, -922.7977, 5.980528],
    ),
}


def make_species(*names: str) -> list[Species]:
    species = []
    for name in names:
        mw, low, high = _NASA[name]
        species.append(Species(name, mw, NASA7(low, high)))
    return species


def species_json(*names: str) -> list[dict]:
    """Species entries in the CLI mechanism file format."""
    return [
        {"name": name, "mw": _NASA[name][0], "nasa7": {"low": _NASA[name][1], "high": _NASA[name][2]}}
        for name in names
    ]
