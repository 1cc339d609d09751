from .http_generation_gateway import HttpGenerationGateway

__all__ = ["HttpGenerationGateway"]
