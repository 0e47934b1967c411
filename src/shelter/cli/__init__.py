# src/shelter/cli/__init__.py
