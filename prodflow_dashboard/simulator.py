"""
Simulated data generator for the production dashboard.

Generates cycle-time rows shaped like a real shop-floor export (French
headers, "H:MM:SS" times) so the dashboard has something to show before
a file is uploaded. All values are synthetic.
"""

import numpy as np

# ---------------------------------------------------------------------------
# Typical line layout: (macro stage, station, planned min, drift min,
#                       anomaly, potential cause, cost/risk)
# ---------------------------------------------------------------------------
_STATIONS = [
    ("Découpe", "Découpe laser", 12.0, 1.0,
     "Réglage machine", "Changement de série", "Faible"),
    ("Découpe", "Ébavurage", 6.0, 0.5,
     "Aucun", "Aucune", "Faible"),
    ("Usinage", "Fraisage CN", 25.0, 12.5,
     "Panne broche", "Maintenance préventive non réalisée", "Élevé"),
    ("Usinage", "Perçage", 8.0, 2.0,
     "Usure outil", "Durée de vie outil dépassée", "Moyen"),
    ("Usinage", "Taraudage", 5.0, 0.0,
     "Aucun", "Aucune", "Faible"),
    ("Assemblage", "Pré-assemblage", 15.0, 6.5,
     "Manque pièces", "Rupture d'approvisionnement", "Moyen"),
    ("Assemblage", "Assemblage final", 30.0, 4.0,
     "Retouche", "Défaut qualité amont", "Moyen"),
    ("Contrôle", "Contrôle qualité", 10.0, 1.5,
     "Attente contrôleur", "Sous-effectif", "Faible"),
]


def _format_hms(minutes: float) -> str:
    total_s = int(round(max(minutes, 0.0) * 60))
    hours, rem = divmod(total_s, 3600)
    mins, secs = divmod(rem, 60)
    return f"{hours}:{mins:02d}:{secs:02d}"


def generate_cycle_time_rows(
    pieces_per_station: int = 12,
    seed: int = 42,
) -> list[dict[str, str]]:
    """Generate simulated cycle-time rows, one per piece per station.

    Actual times scatter around planned + drift; the same seed always
    yields the same rows.
    """
    rng = np.random.default_rng(seed)
    rows = []

    for macro, station, planned, drift, anomaly, cause, risk in _STATIONS:
        for _ in range(pieces_per_station):
            actual = planned + drift + rng.normal(0, max(planned * 0.05, 0.2))
            rows.append({
                "Nom": station,
                "Poste": macro,
                "Temps Prévu": _format_hms(planned),
                "Temps Réel": _format_hms(actual),
                "Coût/Risque": risk,
                "Aléas Industriels": anomaly,
                "Cause Potentielle": cause,
            })

    return rows
