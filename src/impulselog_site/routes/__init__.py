"""HTTP routers wired into the application in `impulselog_site.main`."""
