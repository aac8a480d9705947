"""Calcul des bornes de fenêtres temporelles.

Les bornes sont calculées côté Python puis liées comme paramètres DuckDB,
ce qui rend les requêtes reproductibles pour un instant de référence donné.
"""

from __future__ import annotations

import calendar
from datetime import datetime, timezone


def to_naive_utc(moment: datetime | None) -> datetime:
    """Normalise un instant en datetime UTC naïf (format TIMESTAMP DuckDB).

    Args:
        moment: Instant de référence (None = maintenant).

    Returns:
        Datetime sans tzinfo, exprimé en UTC.
    """
    if moment is None:
        return datetime.now(timezone.utc).replace(tzinfo=None)
    if moment.tzinfo is not None:
        return moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment


def months_before(moment: datetime, months: int) -> datetime:
    """Retourne l'instant situé `months` mois calendaires avant `moment`.

    Le jour est ramené au dernier jour du mois cible si nécessaire
    (ex: 31 mai - 3 mois = 28/29 février).
    """
    if months < 0:
        raise ValueError(f"months doit être positif (reçu {months})")

    total = moment.year * 12 + (moment.month - 1) - months
    year, month_index = divmod(total, 12)
    month = month_index + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)
