"""Certificate, load balancer and log operations for containers on AWS Fargate."""

__version__ = "0.3.0"