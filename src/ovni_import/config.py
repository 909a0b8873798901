# O.V.N.I Import - HTML ledger import pipeline for O.V.N.I ASBL bookkeeping
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Configuration helpers for O.V.N.I Import.

This module is responsible for:
- loading the import configuration from a TOML file,
- providing built-in defaults matching the O.V.N.I spreadsheet exports,
- exposing typed, immutable dataclasses used by the rest of the pipeline.

Keyword tables (artists, projects, categories) are plain configuration:
they are passed explicitly into the pipeline entry point so that tests and
alternative data sets can substitute their own tables.

All keywords are stored folded (lowercase, accents stripped) so that the
matching code only ever compares folded text.
"""

import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .models import CATEGORIES
from .normalize import DEFAULT_CLOSING_MARKERS, fold_text

DEFAULT_CONFIG_FILENAME = "ovni_import_config.toml"


@dataclass(frozen=True)
class ArtistKeyword:
    """A folded name fragment and the artist display name it stands for."""

    keyword: str
    name: str


@dataclass(frozen=True)
class ProjectKeyword:
    """
    A folded project keyword.

    Attributes:
        keyword: Folded fragment (e.g. "talu", "wireless").
        code: Project code used as natural key (e.g. "TALU").
        name: Project display name (e.g. "LE TALU").
        exact: When True, the keyword only matches a whole file base name
            (or a standalone word in free text). Used for short codes such as
            "geo" that are also prefixes of artist names.
    """

    keyword: str
    code: str
    name: str
    exact: bool = False


@dataclass(frozen=True)
class ResolverConfig:
    """Filename and counterparty keyword tables."""

    ignore_files: tuple[str, ...]
    artists: tuple[ArtistKeyword, ...]
    projects: tuple[ProjectKeyword, ...]

    def project_name(self, code: str) -> str:
        """Return the display name of a project code (the code itself if unknown)."""
        for p in self.projects:
            if p.code == code:
                return p.name
        return code


@dataclass(frozen=True)
class CategoryRule:
    """
    One entry of the ordered category table.

    A rule matches a folded description when every `all_of` fragment is
    present and, if `any_of` is not empty, at least one `any_of` fragment is.
    """

    categorie: str
    any_of: tuple[str, ...] = ()
    all_of: tuple[str, ...] = ()

    def matches(self, folded_text: str) -> bool:
        if not all(k in folded_text for k in self.all_of):
            return False
        if not self.any_of:
            return bool(self.all_of)
        return any(k in folded_text for k in self.any_of)


@dataclass(frozen=True)
class NormalizerConfig:
    """
    Row-level normalization options.

    Attributes:
        closing_markers: Date-cell prefixes of totals/closing lines.
        summary_markers: Description prefixes of summary lines
            ("total", "solde", ...) that are not transactions.
        statement_markers: Extra prefixes, checked on every text cell of a
            year-summary entry (QUI and QUOI), of balance carry-overs and
            bookkeeping notes ("compte au 01/01", "mise à jour", ...).
        year_scan_rows: Number of leading rows scanned for the file year.
        max_description_length: Cap on stored descriptions.
        dedup_prefix_length: Description prefix length in the dedup key.

    All markers are stored folded and compared case- and accent-insensitively.
    """

    closing_markers: tuple[str, ...] = DEFAULT_CLOSING_MARKERS
    summary_markers: tuple[str, ...] = ("total", "solde", "balance", "report")
    statement_markers: tuple[str, ...] = (
        "compte",
        "cloture",
        "sur le compte",
        "ok valide",
        "valide",
        "mise a jour",
        "en trop",
    )
    year_scan_rows: int = 10
    max_description_length: int = 500
    dedup_prefix_length: int = 50


@dataclass(frozen=True)
class SqlConfig:
    """Options of the SQL seed script."""

    artist_colors: tuple[str, ...] = (
        "#FF6B6B",
        "#4ECDC4",
        "#45B7D1",
        "#96CEB4",
        "#FFEAA7",
        "#DDA0DD",
        "#98D8C8",
        "#F7DC6F",
        "#BB8FCE",
    )
    project_status: str = "actif"
    unattributed_label: str = "Caisse ASBL"


@dataclass(frozen=True)
class PathsConfig:
    """Input directory of HTML exports and output SQL file."""

    input_dir: Path
    output_file: Path


DEFAULT_IGNORE_FILES: tuple[str, ...] = ("asbl.html", "divers.html", "feuille 36.html")

DEFAULT_ARTISTS: tuple[ArtistKeyword, ...] = (
    ArtistKeyword("maia", "Maïa"),
    ArtistKeyword("geoffrey", "Geoffrey"),
    ArtistKeyword("camille", "Camille"),
    ArtistKeyword("iris", "Iris"),
    ArtistKeyword("emma", "Emma"),
    ArtistKeyword("greta", "Greta"),
    ArtistKeyword("juliette", "Juliette"),
    ArtistKeyword("jul", "Jul"),
    ArtistKeyword("lea", "Léa"),
    ArtistKeyword("lou", "Lou"),
)

DEFAULT_PROJECTS: tuple[ProjectKeyword, ...] = (
    ProjectKeyword("geo", "GEO", "GEO", exact=True),
    ProjectKeyword("talu", "TALU", "LE TALU"),
    ProjectKeyword("lvlr", "LVLR", "LVLR"),
    ProjectKeyword("wp", "WP", "Wireless People"),
    ProjectKeyword("wireless", "WP", "Wireless People"),
    ProjectKeyword("poema", "POEM", "POEMA"),
    ProjectKeyword("poem", "POEM", "POEMA"),
)

# First match wins.
DEFAULT_CATEGORY_RULES: tuple[CategoryRule, ...] = (
    CategoryRule("smart", any_of=("smart",)),
    CategoryRule("thoman", any_of=("thoman",)),
    CategoryRule("frais_bancaires", any_of=("triodos",)),
    CategoryRule("frais_bancaires", all_of=("frais",), any_of=("banc", "bank")),
    CategoryRule("loyer", any_of=("loyer", "communa")),
    CategoryRule("materiel", any_of=("matos", "materiel")),
    CategoryRule(
        "deplacement",
        any_of=("trajet", "deplacement", "avion", "train", "uber"),
    ),
    CategoryRule("cachet", any_of=("cachet",)),
    CategoryRule("subvention", any_of=("sub",)),
    CategoryRule("transfert_interne", any_of=("from ", "to ", "transfert")),
)


@dataclass(frozen=True)
class ImportConfig:
    """
    Complete configuration of one import run.

    This aggregates:
    - input/output paths,
    - filename and counterparty keyword tables,
    - the ordered category rules,
    - row normalization options,
    - SQL output options.
    """

    paths: PathsConfig
    resolver: ResolverConfig
    categories: tuple[CategoryRule, ...]
    normalizer: NormalizerConfig = field(default_factory=NormalizerConfig)
    sql: SqlConfig = field(default_factory=SqlConfig)

    @classmethod
    def default(cls, base_dir: Optional[Path] = None) -> "ImportConfig":
        """Built-in configuration, paths resolved against `base_dir` (cwd)."""
        base = (base_dir or Path.cwd()).resolve()
        return cls(
            paths=PathsConfig(
                input_dir=base / "bilan compta O.V.N.I",
                output_file=base / "supabase" / "seed" / "seed_transactions.sql",
            ),
            resolver=ResolverConfig(
                ignore_files=DEFAULT_IGNORE_FILES,
                artists=DEFAULT_ARTISTS,
                projects=DEFAULT_PROJECTS,
            ),
            categories=DEFAULT_CATEGORY_RULES,
        )


def _load_toml(path: Path) -> dict[str, Any]:
    """
    Load a TOML file and return its content as a dictionary.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the TOML content cannot be parsed or is not a table.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"Failed to parse TOML config file: {path}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Invalid TOML root type in {path}, expected a table.")

    return data


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, Mapping):
        return {}
    return value


def _folded_tuple(values: Any, what: str) -> tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, str):
        values = [values]
    if not isinstance(values, list):
        raise ValueError(f"Invalid value for {what}: expected a list of strings.")
    return tuple(fold_text(str(v)) for v in values)


def _parse_artists(entries: Any) -> tuple[ArtistKeyword, ...]:
    if not isinstance(entries, list):
        raise ValueError("[[resolver.artists]] must be an array of tables.")
    artists: list[ArtistKeyword] = []
    for entry in entries:
        try:
            keyword = fold_text(str(entry["keyword"]))
            name = str(entry["name"])
        except (KeyError, TypeError) as exc:
            raise ValueError(
                "Each [[resolver.artists]] entry needs 'keyword' and 'name'."
            ) from exc
        artists.append(ArtistKeyword(keyword=keyword, name=name))
    return tuple(artists)


def _parse_projects(entries: Any) -> tuple[ProjectKeyword, ...]:
    if not isinstance(entries, list):
        raise ValueError("[[resolver.projects]] must be an array of tables.")
    projects: list[ProjectKeyword] = []
    for entry in entries:
        try:
            keyword = fold_text(str(entry["keyword"]))
            code = str(entry["code"])
        except (KeyError, TypeError) as exc:
            raise ValueError(
                "Each [[resolver.projects]] entry needs 'keyword' and 'code'."
            ) from exc
        projects.append(
            ProjectKeyword(
                keyword=keyword,
                code=code,
                name=str(entry.get("name") or code),
                exact=bool(entry.get("exact", False)),
            )
        )
    return tuple(projects)


def _parse_categories(entries: Any) -> tuple[CategoryRule, ...]:
    if not isinstance(entries, list):
        raise ValueError("[[categories]] must be an array of tables.")
    rules: list[CategoryRule] = []
    for entry in entries:
        if not isinstance(entry, Mapping) or "categorie" not in entry:
            raise ValueError("Each [[categories]] entry needs a 'categorie'.")
        categorie = str(entry["categorie"])
        if categorie not in CATEGORIES:
            raise ValueError(
                f"Unknown categorie {categorie!r} in [[categories]]. "
                f"Allowed: {', '.join(CATEGORIES)}"
            )
        rule = CategoryRule(
            categorie=categorie,
            any_of=_folded_tuple(entry.get("any_of"), "categories.any_of"),
            all_of=_folded_tuple(entry.get("all_of"), "categories.all_of"),
        )
        if not rule.any_of and not rule.all_of:
            raise ValueError(
                f"Category rule for {categorie!r} has no 'any_of' nor 'all_of'."
            )
        rules.append(rule)
    return tuple(rules)


def _markers(section: Mapping[str, Any], key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    if key not in section:
        return default
    return _folded_tuple(section[key], f"normalizer.{key}")


def _parse_normalizer(section: Mapping[str, Any]) -> NormalizerConfig:
    defaults = NormalizerConfig()
    closing = _markers(section, "closing_markers", defaults.closing_markers)
    summary = _markers(section, "summary_markers", defaults.summary_markers)
    statement = _markers(section, "statement_markers", defaults.statement_markers)
    try:
        return NormalizerConfig(
            closing_markers=closing,
            summary_markers=summary,
            statement_markers=statement,
            year_scan_rows=int(section.get("year_scan_rows", defaults.year_scan_rows)),
            max_description_length=int(
                section.get("max_description_length", defaults.max_description_length)
            ),
            dedup_prefix_length=int(
                section.get("dedup_prefix_length", defaults.dedup_prefix_length)
            ),
        )
    except (TypeError, ValueError) as exc:
        raise ValueError("Invalid value in the [normalizer] section.") from exc


def _parse_sql(section: Mapping[str, Any]) -> SqlConfig:
    defaults = SqlConfig()
    colors = section.get("artist_colors", defaults.artist_colors)
    if isinstance(colors, str) or not colors:
        raise ValueError("[sql].artist_colors must be a non-empty list of colors.")
    return SqlConfig(
        artist_colors=tuple(str(c) for c in colors),
        project_status=str(section.get("project_status", defaults.project_status)),
        unattributed_label=str(
            section.get("unattributed_label", defaults.unattributed_label)
        ),
    )


def load_import_config(config_path: Optional[str] = None) -> ImportConfig:
    """
    Load the O.V.N.I Import configuration.

    Expected sections in the TOML file (all optional)
    -------------------------------------------------
    [paths]
        input_dir, output_file. Relative paths are resolved against the
        directory of the TOML file.

    [resolver]
        ignore_files: filenames that are never ledgers.

    [[resolver.artists]]
        keyword, name. Checked in file order, first match wins.

    [[resolver.projects]]
        keyword, code, name, exact. Checked in file order.

    [[categories]]
        categorie, any_of, all_of. Checked in file order, first match wins.

    [normalizer], [sql]
        See NormalizerConfig and SqlConfig.

    Any section that is absent falls back to the built-in defaults.

    Parameters
    ----------
    config_path:
        Path to the TOML file. If None, ``ovni_import_config.toml`` in the
        current directory is used when it exists; otherwise the built-in
        defaults are returned.

    Raises
    ------
    FileNotFoundError
        If an explicit `config_path` does not exist.
    ValueError
        If the file cannot be parsed or contains invalid entries.
    """
    if config_path is None:
        config_file = Path(DEFAULT_CONFIG_FILENAME).resolve()
        if not config_file.is_file():
            return ImportConfig.default()
    else:
        config_file = Path(config_path).resolve()

    raw = _load_toml(config_file)
    base_dir = config_file.parent
    defaults = ImportConfig.default(base_dir)

    # 1) Paths
    paths_section = _section(raw, "paths")
    input_dir_raw = paths_section.get("input_dir")
    output_file_raw = paths_section.get("output_file")
    paths = PathsConfig(
        input_dir=(base_dir / str(input_dir_raw)).resolve()
        if input_dir_raw
        else defaults.paths.input_dir,
        output_file=(base_dir / str(output_file_raw)).resolve()
        if output_file_raw
        else defaults.paths.output_file,
    )

    # 2) Resolver keyword tables
    resolver_section = _section(raw, "resolver")
    ignore_files = (
        _folded_tuple(resolver_section["ignore_files"], "resolver.ignore_files")
        if "ignore_files" in resolver_section
        else defaults.resolver.ignore_files
    )
    artists = (
        _parse_artists(resolver_section["artists"])
        if "artists" in resolver_section
        else defaults.resolver.artists
    )
    projects = (
        _parse_projects(resolver_section["projects"])
        if "projects" in resolver_section
        else defaults.resolver.projects
    )

    # 3) Category rules
    categories = (
        _parse_categories(raw["categories"])
        if "categories" in raw
        else defaults.categories
    )

    return ImportConfig(
        paths=paths,
        resolver=ResolverConfig(
            ignore_files=ignore_files,
            artists=artists,
            projects=projects,
        ),
        categories=categories,
        normalizer=_parse_normalizer(_section(raw, "normalizer")),
        sql=_parse_sql(_section(raw, "sql")),
    )
