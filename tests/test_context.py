"""
Messaging context tests
"""

import pytest

from sqs_messaging import (
    CompositeMessageConverter,
    JsonMessageConverter,
    MessagingContext,
    ObjectMessageConverter,
    QueueMessagingTemplate,
    SimpleMessageConverter,
)

from .conftest import QUEUE_TEMPLATE_DEFINITIONS, TEST_CONFIG


@pytest.mark.asyncio
async def test_context_builds_two_named_templates(context):
    """Test both reference templates are built with their destination and converter"""
    assert context.template_names() == list(QUEUE_TEMPLATE_DEFINITIONS)

    default_template = context.template("default_queue_messaging_template")
    custom_template = context.template("queue_messaging_template_with_custom_converter")

    assert isinstance(default_template, QueueMessagingTemplate)
    assert isinstance(custom_template, QueueMessagingTemplate)
    assert default_template is not custom_template

    assert default_template.default_destination_name == "JsonQueue"
    assert custom_template.default_destination_name == "StreamQueue"

    converter = default_template.message_converter
    assert isinstance(converter, CompositeMessageConverter)
    assert [type(c) for c in converter.converters] == [SimpleMessageConverter, JsonMessageConverter]
    assert isinstance(custom_template.message_converter, ObjectMessageConverter)


@pytest.mark.asyncio
async def test_templates_share_client(context, default_template, object_template):
    """Test templates share the context's SQS client"""
    assert default_template.sqs_client is context.sqs_client
    assert object_template.sqs_client is context.sqs_client


@pytest.mark.asyncio
async def test_template_is_singleton(context):
    """Test the same instance is returned on every lookup"""
    first = context.template("default_queue_messaging_template")
    assert context.template("default_queue_messaging_template") is first
    assert context.templates()["default_queue_messaging_template"] is first


@pytest.mark.asyncio
async def test_unknown_template(context):
    """Test looking up an unregistered template"""
    with pytest.raises(KeyError):
        context.template("missing")


@pytest.mark.asyncio
async def test_register_template(context):
    """Test registering a template after construction"""
    context.register_template("text", {"default_destination": "TextQueue", "message_converter": "simple"})

    template = context.template("text")
    assert template.default_destination_name == "TextQueue"
    assert isinstance(template.message_converter, SimpleMessageConverter)


@pytest.mark.asyncio
async def test_register_template_after_creation(context, default_template):
    """Test a created template cannot be redefined"""
    with pytest.raises(ValueError):
        context.register_template("default_queue_messaging_template", {"default_destination": "Other"})


@pytest.mark.asyncio
async def test_register_template_unknown_keys(context):
    """Test unknown definition keys are rejected"""
    with pytest.raises(ValueError, match="destinaton"):
        context.register_template("typo", {"destinaton": "JsonQueue"})


@pytest.mark.asyncio
async def test_unknown_converter_name(context):
    """Test an unknown converter name fails when the template is built"""
    context.register_template("bad", {"message_converter": "xml"})
    with pytest.raises(ValueError, match="Unknown message converter"):
        context.template("bad")


@pytest.mark.asyncio
async def test_endpoint_derived_from_region(monkeypatch):
    """Test the endpoint defaults to the regional SQS endpoint"""
    for name in ("AWS_ENDPOINT_URL_SQS", "AWS_ENDPOINT_URL", "AWS_REGION", "AWS_DEFAULT_REGION"):
        monkeypatch.delenv(name, raising=False)

    async with MessagingContext(region="eu-west-1") as ctx:
        assert ctx.config["endpoint_url"] == "https://sqs.eu-west-1.amazonaws.com"
        assert ctx.sqs_client.http_client.endpoint_url == "https://sqs.eu-west-1.amazonaws.com/"


@pytest.mark.asyncio
async def test_config_from_environment(monkeypatch):
    """Test settings are read from the standard AWS environment variables"""
    monkeypatch.setenv("AWS_ENDPOINT_URL_SQS", "http://localhost:4566")
    monkeypatch.setenv("AWS_REGION", "eu-central-1")
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "env-key")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "env-secret")

    async with MessagingContext() as ctx:
        assert ctx.config["endpoint_url"] == "http://localhost:4566"
        assert ctx.config["region"] == "eu-central-1"
        assert ctx.config["access_key_id"] == "env-key"


@pytest.mark.asyncio
async def test_keyword_arguments_override_config(monkeypatch):
    """Test keyword arguments win over the config dict"""
    monkeypatch.delenv("AWS_ENDPOINT_URL_SQS", raising=False)
    monkeypatch.delenv("AWS_ENDPOINT_URL", raising=False)

    async with MessagingContext(
        {"endpoint_url": "http://config:9324", "retry_attempts": 5},
        endpoint_url=TEST_CONFIG["endpoint_url"],
    ) as ctx:
        assert ctx.config["endpoint_url"] == TEST_CONFIG["endpoint_url"]
        assert ctx.config["retry_attempts"] == 5


def test_invalid_config():
    """Test invalid configuration is rejected"""
    with pytest.raises(ValueError):
        MessagingContext({"endpoint": "http://localhost"})
    with pytest.raises(ValueError):
        MessagingContext(endpoint_url="localhost:9324")
    with pytest.raises(ValueError):
        MessagingContext(region="Not A Region")


@pytest.mark.asyncio
async def test_resource_ids(transport, fake_sqs):
    """Test logical destination names are mapped to physical queue names"""
    fake_sqs.add_queue("physical-json-queue")

    async with MessagingContext(
        endpoint_url=TEST_CONFIG["endpoint_url"],
        resource_ids={"JsonQueue": "physical-json-queue"},
        templates=QUEUE_TEMPLATE_DEFINITIONS,
        transport=transport,
    ) as ctx:
        await ctx.template("default_queue_messaging_template").convert_and_send("mapped")

    assert fake_sqs.last_request("GetQueueUrl") == {"QueueName": "physical-json-queue"}
    assert len(fake_sqs.messages("physical-json-queue")) == 1
    assert fake_sqs.messages("JsonQueue") == []


@pytest.mark.asyncio
async def test_context_signs_requests_with_configured_credentials(context, fake_sqs):
    """Test template traffic is signed for the configured key and region"""
    template = context.template("default_queue_messaging_template")

    await template.convert_and_send("signed payload")

    _, _, request = fake_sqs.requests[-1]
    authorization = request.headers["authorization"]
    assert authorization.startswith(f"AWS4-HMAC-SHA256 Credential={TEST_CONFIG['access_key_id']}/")
    assert f"/{TEST_CONFIG['region']}/sqs/aws4_request" in authorization
