"""NEORisk: near-Earth object risk classification over NASA NeoWs data."""

__version__ = "0.1.0"
