"""buildtail terminal output — Rich renderers and the interactive picker.

Modules
-------
renderer
    ``ConsoleLogOutput`` prints build/unit headers, log lines and warnings;
    ``CatalogRenderer`` prints the build catalog as a table.
picker
    ``RichPicker`` lets the user choose a build when none was named.
"""
