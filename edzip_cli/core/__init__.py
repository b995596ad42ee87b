"""
Core application engine.

`query_engine` turns the catalog, a search term and a sort order into the
ordered view the console renders. `dispatcher` turns a selected record into
staggered, fire-and-forget download triggers.
"""
