"""HTTP handlers for the NewSight gateway.  Registered on the app in newsight.main."""
