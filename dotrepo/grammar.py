"""Regular expressions for the parts of project, solution and NuGet files
that dotrepo reads or rewrites.

Nothing here validates the shape of a document.  Each pattern targets one
marker and everything around it is left alone.
"""

from __future__ import annotations

import re

# -- Project files (.csproj) -------------------------------------------------

PROJECT_ID = re.compile(r"(?:^|[\\/])([^$\\/]*)\.csproj", re.IGNORECASE)
PROJECT_EXTENSION = ".csproj"
PROJECT_VERSION = re.compile(r"<Version>\s*([^<]*?)\s*</Version>")
REFERENCE_TAG = re.compile(r"<(Package|Project)Reference\s([^>]*?)/?>", re.IGNORECASE)
REFERENCE_INCLUDE = re.compile(r'Include="([^"]+)"', re.IGNORECASE)
REFERENCE_VERSION = re.compile(r'Version="([^"]+)"', re.IGNORECASE)

# -- Solution files (.sln) ---------------------------------------------------

SOLUTION_ID = re.compile(r"(?:^|[\\/])([^$\\/]*)\.sln$", re.IGNORECASE)
SOLUTION_EXTENSION = ".sln"
SOLUTION_LIST_SEPARATOR = re.compile(r"-+\r?\n")

# -- NuGet configuration -----------------------------------------------------

NUGET_CONFIG_NAME = "nuget.config"
NUGET_PACKAGE_SOURCES = re.compile(r"<packageSources>(\s*)", re.IGNORECASE)
NUGET_LOCAL_SOURCE = re.compile(r'<add\s+key="Local"', re.IGNORECASE)


def match_project_id(path: str) -> str | None:
    """Extract the project identifier (file stem) from a project path."""
    m = PROJECT_ID.search(path)
    return m.group(1) if m else None


def match_solution_id(path: str) -> str | None:
    m = SOLUTION_ID.search(path)
    return m.group(1) if m else None


def package_reference_pattern(package_id: str) -> re.Pattern[str]:
    """Match the version-pinned reference tag of one package."""
    return re.compile(rf'<PackageReference Include="{re.escape(package_id)}"[^/>]+/>', re.IGNORECASE)


def project_reference_pattern(project_path: str) -> re.Pattern[str]:
    """Match the path-based reference tag pointing at one project file."""
    return re.compile(rf'<ProjectReference Include="{re.escape(project_path)}"[^/>]+/>', re.IGNORECASE)


def package_reference_tag(package_id: str, version: str) -> str:
    return f'<PackageReference Include="{package_id}" Version="{version}" />'


def project_reference_tag(project_path: str) -> str:
    return f'<ProjectReference Include="{project_path}" />'
