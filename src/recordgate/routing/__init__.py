from recordgate.routing.router import ActionRouter

__all__ = ["ActionRouter"]
