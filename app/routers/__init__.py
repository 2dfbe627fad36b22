"""Route modules, one APIRouter per resource, registered in app/main.py."""
from . import dashboard, generations, pokemons, types, uploads

__all__ = [
    'dashboard',
    'generations',
    'pokemons',
    'types',
    'uploads',
]
