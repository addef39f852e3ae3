"""
Simple example demonstrating the SQS messaging templates
Runs against ElasticMQ / LocalStack on localhost:9324 by default
"""

import asyncio
import os
from dataclasses import dataclass

from sqs_messaging import MessagingContext


@dataclass
class Task:
    name: str
    to: str


TEMPLATES = {
    "default_queue_messaging_template": {"default_destination": "JsonQueue", "auto_create_queues": True},
    "queue_messaging_template_with_custom_converter": {
        "default_destination": "StreamQueue",
        "message_converter": "object",
        "auto_create_queues": True,
    },
}


async def main():
    """Main example function"""
    async with MessagingContext(
        endpoint_url=os.environ.get("SQS_ENDPOINT", "http://localhost:9324"),
        access_key_id="x",
        secret_access_key="x",
        templates=TEMPLATES,
    ) as context:
        json_template = context.template("default_queue_messaging_template")
        object_template = context.template("queue_messaging_template_with_custom_converter")

        # Text and JSON payloads on the default template
        print("\nSending to JsonQueue...")
        await json_template.convert_and_send("Hello, world!")
        await json_template.convert_and_send(Task("send-email", "user@example.com"), headers={"priority": 5})

        text = await json_template.receive_and_convert(str)
        print(f"Received text: {text}")
        task = await json_template.receive_and_convert(Task)
        print(f"Received task: {task}")

        # Arbitrary objects on the custom converter template
        print("\nSending to StreamQueue...")
        await object_template.convert_and_send({"tags": {"a", "b"}, "task": Task("resize", "images")})
        print(f"Received object: {await object_template.receive_and_convert(dict)}")

        print("\nExample completed successfully!")


if __name__ == "__main__":
    asyncio.run(main())
