from aws_cdk import Duration
from aws_cdk import aws_events as events
from aws_cdk import aws_events_targets as targets
from aws_cdk import aws_lambda as _lambda
from constructs import Construct


class Scheduling(Construct):
    """自動解放スイープの定期実行 Construct"""

    def __init__(
        self,
        scope: Construct,
        id: str,
        release_sweep: _lambda.IFunction,
        interval: Duration = Duration.hours(1),
    ) -> None:
        super().__init__(scope, id)

        self.rule = events.Rule(
            self,
            "ReleaseSweepSchedule",
            schedule=events.Schedule.rate(interval),
            description="Release escrowed funds after the confirmation grace period",
        )
        self.rule.add_target(targets.LambdaFunction(release_sweep, retry_attempts=0))
