"""Execution pipeline for workspace commands.

This package contains the components that act on a loaded workspace:

- **process**: External command execution (``dotnet``) with prefixed output streaming
- **colors**: Per-run prefix color allocation
- **mode**: Development / release mode transitions
- **build**: Build orchestration (prepare -> build in dependency order -> restore)
- **release**: Versioning (git checks -> bump -> commit and tag -> push)
"""
