"""Core domain logic: exceptions, model resolution, reply rendering, session locks."""
