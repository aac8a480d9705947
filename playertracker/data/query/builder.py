"""
Construction de requêtes SQL paramétrées.
(Parameterized SQL query builder)

HOW IT WORKS:
Chaque fragment SQL est ajouté avec les paramètres nommés ($nom) qu'il
utilise. Le builder accumule texte et paramètres, et refuse qu'un même
nom soit lié à deux valeurs différentes. Les valeurs ne sont jamais
concaténées dans le texte SQL.

Exemple:
    query = (
        QueryBuilder()
        .add("SELECT SUM(play_time_minutes) AS minutes FROM player_rounds")
        .add("WHERE player_name = $player", player="Sarge")
        .add("AND round_start_time >= $since", since=since)
        .build()
    )
    engine.run(query)
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# NOTE: DuckDB refuse les paramètres nommés liés mais absents du SQL ;
# ne lier que ce que les fragments référencent.

_MISSING = object()


@dataclass(frozen=True)
class SqlQuery:
    """Requête SQL finale et ses paramètres nommés."""

    sql: str
    params: dict[str, Any] = field(default_factory=dict)


class QueryBuilder:
    """Assemble des fragments SQL et leurs paramètres liés."""

    def __init__(self) -> None:
        self._fragments: list[str] = []
        self._params: dict[str, Any] = {}

    def bind(self, **params: Any) -> QueryBuilder:
        """
        Lie des paramètres nommés sans ajouter de texte.

        Raises:
            ValueError: Si un nom est déjà lié à une autre valeur.
        """
        for name, value in params.items():
            existing = self._params.get(name, _MISSING)
            if existing is not _MISSING and existing != value:
                raise ValueError(
                    f"Paramètre ${name} déjà lié à {existing!r}, conflit avec {value!r}"
                )
            self._params[name] = value
        return self

    def add(self, fragment: str, **params: Any) -> QueryBuilder:
        """Ajoute un fragment SQL et les paramètres qu'il référence."""
        self.bind(**params)
        self._fragments.append(fragment.strip())
        return self

    def add_if(self, condition: bool, fragment: str, **params: Any) -> QueryBuilder:
        """Ajoute le fragment uniquement si `condition` est vraie."""
        if condition:
            self.add(fragment, **params)
        return self

    def add_server_filter(
        self,
        servers: list[str] | tuple[str, ...],
        *,
        column: str = "server_guid",
        keyword: str = "AND",
    ) -> QueryBuilder:
        """
        Restreint la requête à une liste de serveurs liée à $servers.

        Une liste vide ne filtre rien et ne lie aucun paramètre.

        Args:
            servers: Identifiants serveur
            column: Colonne SQL (identifiant interne, jamais une entrée utilisateur)
            keyword: Mot-clé de liaison (AND / WHERE)
        """
        if not servers:
            return self
        return self.add(f"{keyword} list_contains($servers, {column})", servers=list(servers))

    @property
    def params(self) -> dict[str, Any]:
        return dict(self._params)

    def build(self) -> SqlQuery:
        return SqlQuery(sql="\n".join(self._fragments), params=dict(self._params))

