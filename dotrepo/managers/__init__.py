"""Workspace managers: reading and rewriting the files of a .NET workspace.

- **config**: ``dotrepo.json`` workspace configuration
- **projects**: project discovery, parsing and reference rewriting
- **solutions**: solution membership via ``dotnet sln``
- **nuget**: local package feed registration in ``nuget.config``
- **versions**: workspace-wide version bumps
- **git**: readiness checks, commit, tag and push around a release
"""
