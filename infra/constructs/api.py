from aws_cdk import aws_apigatewayv2 as apigwv2
from aws_cdk import aws_apigatewayv2_authorizers as authorizers
from aws_cdk import aws_apigatewayv2_integrations as integrations
from aws_cdk import aws_lambda as _lambda
from constructs import Construct


class Api(Construct):
    """API Gateway (HTTP API) Construct

    利用者向けルートは JWT オーソライザーで保護し、sub クレームを操作主体とする。
    Webhook とスイープは独自の検証（署名・共有シークレット）を行うため認可なし。
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        jwt_issuer: str,
        jwt_audience: list[str],
        routes: dict[tuple[str, str], _lambda.IFunction],
        public_routes: dict[tuple[str, str], _lambda.IFunction],
    ) -> None:
        super().__init__(scope, id)

        self.http_api = apigwv2.HttpApi(
            self,
            "SendboxHttpApi",
            api_name="Sendbox Booking API",
        )

        authorizer = authorizers.HttpJwtAuthorizer(
            "JwtAuthorizer",
            jwt_issuer,
            jwt_audience=jwt_audience,
        )

        for (method, path), fn in routes.items():
            self._add_route(method, path, fn, authorizer)

        for (method, path), fn in public_routes.items():
            self._add_route(method, path, fn, None)

    def _add_route(
        self,
        method: str,
        path: str,
        fn: _lambda.IFunction,
        authorizer: authorizers.HttpJwtAuthorizer | None,
    ) -> None:
        integration_id = (
            f"{method.title()}{path.replace('/', '-').replace('{', '').replace('}', '')}"
        )
        self.http_api.add_routes(
            path=path,
            methods=[apigwv2.HttpMethod(method)],
            integration=integrations.HttpLambdaIntegration(
                f"{integration_id}Integration", fn
            ),
            authorizer=authorizer,
        )
