from recordgate.http.request import ServerRequest

__all__ = ["ServerRequest"]
