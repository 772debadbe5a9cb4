"""Image Processing Pipeline Package."""

__version__ = "1.0.0"
__author__ = "Bharat kumar"
__description__ = (
    "Event-driven image metadata pipeline using AWS Lambda, S3, SNS, SQS, DynamoDB and SES"
)

__all__ = ["handlers", "core"]
