"""Turn guards: duplicate-action suppression and loop ceilings."""
