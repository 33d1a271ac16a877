from aws_cdk import BundlingOptions, RemovalPolicy
from aws_cdk import aws_lambda as _lambda
from constructs import Construct

RUNTIME = _lambda.Runtime.PYTHON_3_13
ARCHITECTURE = _lambda.Architecture.ARM_64


class Layers(Construct):
    """Lambda Layers Construct

    sendbox パッケージ本体は関数コードに含め、サードパーティ依存
    （Powertools, Pydantic, Stripe SDK）のみを共通レイヤーに置く。
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        requirements_dir: str = "layers/common_layer",
    ) -> None:
        super().__init__(scope, id)

        self.common_layer = _lambda.LayerVersion(
            self,
            "CommonLayer",
            code=_lambda.Code.from_asset(
                requirements_dir,
                bundling=BundlingOptions(
                    image=RUNTIME.bundling_image,
                    platform="linux/arm64",
                    command=[
                        "bash",
                        "-c",
                        "pip install --no-cache-dir -r requirements.txt "
                        "-t /asset-output/python "
                        "&& find /asset-output -name '__pycache__' -prune -exec rm -rf {} +",
                    ],
                ),
            ),
            compatible_runtimes=[RUNTIME],
            compatible_architectures=[ARCHITECTURE],
            removal_policy=RemovalPolicy.RETAIN,
            description="Powertools, Pydantic and Stripe SDK",
        )
