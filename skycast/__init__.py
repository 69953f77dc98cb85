"""SkyCast: location resolution, city suggestions and cached weather lookups."""
