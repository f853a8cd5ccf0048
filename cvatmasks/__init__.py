"""Per-label binary masks from CVAT XML annotation exports.

Subpackages:
- `core` — settings and logging setup
- `pipeline` — document parsing, rasterization, mask aggregation and output
"""

__version__ = "0.1.0"
