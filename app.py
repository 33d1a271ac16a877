#!/usr/bin/env python3

import aws_cdk as cdk

from sendbox_stack import SendboxStack

app = cdk.App()
SendboxStack(
    app,
    "SendboxStack",
)

app.synth()
