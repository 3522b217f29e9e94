"""Virtual disk images with MBR/EBR partitioning, mounting, EXT2/EXT3-style formatting and Graphviz reports."""

__version__ = "0.1.0"
__all__ = ["structs", "storage", "params", "disks", "mount", "filesystem", "reports", "cli"]