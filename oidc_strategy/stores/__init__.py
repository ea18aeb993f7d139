"""Storage used between the request and callback phase."""
