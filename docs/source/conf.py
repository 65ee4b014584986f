# Sphinx configuration for the entidades docs.
#
# Build with: sphinx-build docs/source docs/build

import os
import sys

sys.path.insert(0, os.path.abspath("../.."))

project = "entidades"
copyright = "2025, entidades contributors"
author = "entidades contributors"

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "sphinx.ext.viewcode",
    "sphinx.ext.intersphinx",
    "sphinxcontrib.mermaid",
    "sphinx_immaterial",
]

html_theme = "sphinx_immaterial"
html_theme_options = {
    "font": False,
    "features": ["navigation.expand", "search.highlight", "toc.follow"],
}

# Docstrings are Google style throughout
napoleon_numpy_docstring = False
napoleon_include_init_with_doc = True

autodoc_default_options = {
    "members": True,
    "member-order": "bysource",
}
autodoc_typehints = "description"

intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
}
