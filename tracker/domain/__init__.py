"""Domain entities, enumerations, event hooks and authorisation policy."""
