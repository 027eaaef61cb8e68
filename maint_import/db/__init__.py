"""PostgreSQL access: reference data and the bulk create procedure."""
