"""
Pluggable engines for EasyPDF: renderers and image compressors.
"""
