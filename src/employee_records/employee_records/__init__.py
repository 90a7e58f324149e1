"""Employee Records package.

This package is organized by feature modules (users, employees, query, auth)
with a thin Flask controller layer over service/repository layers. The query
package holds the cursor-paginated, role-scoped query engine.
"""
