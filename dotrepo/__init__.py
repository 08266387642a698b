"""dotrepo - monorepo tooling for .NET workspaces."""

__version__ = "0.1.0"
