import shutil

import pytest

core = pytest.importorskip("aws_cdk")
assertions = pytest.importorskip("aws_cdk.assertions")

if shutil.which("node") is None:
    pytest.skip("CDK synthesis requires Node.js", allow_module_level=True)

from sendbox_stack import SendboxStack  # noqa: E402


@pytest.fixture(scope="module")
def template():
    # Layer のバンドリング（Docker）を行わずに合成する
    app = core.App(context={"aws:cdk:bundling-stacks": []})
    stack = SendboxStack(app, "SendboxStack")
    return assertions.Template.from_stack(stack)


def test_table_has_three_indexes(template):
    template.resource_count_is("AWS::DynamoDB::Table", 1)
    template.has_resource_properties(
        "AWS::DynamoDB::Table",
        {
            "BillingMode": "PAY_PER_REQUEST",
            "GlobalSecondaryIndexes": assertions.Match.array_with(
                [
                    assertions.Match.object_like({"IndexName": "GSI1"}),
                    assertions.Match.object_like({"IndexName": "GSI2"}),
                    assertions.Match.object_like({"IndexName": "GSI3"}),
                ]
            ),
        },
    )


def test_one_function_per_handler(template):
    template.resource_count_is("AWS::Lambda::Function", 12)
    template.has_resource_properties(
        "AWS::Lambda::Function",
        {
            "Handler": "sendbox.settlement.handlers.release_sweep.lambda_handler",
            "Timeout": 600,
        },
    )


def test_public_routes_have_no_authorizer(template):
    template.has_resource_properties(
        "AWS::ApiGatewayV2::Route",
        {"RouteKey": "POST /webhooks/stripe", "AuthorizationType": "NONE"},
    )
    template.has_resource_properties(
        "AWS::ApiGatewayV2::Route",
        {"RouteKey": "POST /bookings", "AuthorizationType": "JWT"},
    )


def test_release_sweep_is_scheduled(template):
    template.has_resource_properties(
        "AWS::Events::Rule",
        {"ScheduleExpression": "rate(1 hour)"},
    )
