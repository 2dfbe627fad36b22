"""Transactional persistence for each resource, called by the routers."""
