"""Service layer: transactional operations shared by the HTTP routers."""
