#!/usr/bin/env python3
"""
Example: Generate monthly and quarterly summaries for one account.

This script runs the pipeline in-process (no web server):
1. Streams the account's Tasks ordered by ActivityDate
2. Writes one Timeline_Summary__c record per month and per quarter
3. POSTs the outcome to the callback URL

Prerequisites:
    - Set environment variables:
        OPENAI_API_KEY=your_key
        SF_LOGIN_URL=https://yourorg.my.salesforce.com
        SF_ACCESS_TOKEN=00D...
        SF_ACCOUNT_ID=001...
        SF_USER_ID=005...
        CALLBACK_URL=https://yourorg.my.salesforce.com/services/apexrest/...

Usage:
    python examples/run_summary.py
"""

import asyncio
import json
import os
import sys
from pathlib import Path

# Add src to path for imports
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from dotenv import load_dotenv

# Load environment variables
env_file = Path(__file__).parent.parent / '.env'
if env_file.exists():
    load_dotenv(env_file)

from timeline_summary.clients.openai_client import OpenAIClient
from timeline_summary.clients.salesforce_client import SalesforceClient
from timeline_summary.config import PipelineConfig, config
from timeline_summary.models.request import SummaryRequest
from timeline_summary.pipeline import Notifier, SummaryPipeline

MONTHLY_PROMPT = (
    'Summarize the sales activities for {{YearMonth}}. Group them by theme, '
    'describe the tone of the interactions and recommend next steps.'
)

QUARTERLY_PROMPT = (
    'Combine the monthly summaries into one summary for {{Quarter}} {{Year}}, '
    'highlighting trends across the quarter.'
)


async def main():
    missing = config.validate()
    if missing:
        print(f'Missing configuration: {", ".join(missing)}')
        return

    account_id = os.environ['SF_ACCOUNT_ID']
    access_token = os.environ['SF_ACCESS_TOKEN']

    request = SummaryRequest(
        accountId=account_id,
        callbackUrl=os.environ['CALLBACK_URL'],
        userPrompt=MONTHLY_PROMPT,
        userPromptQtr=QUARTERLY_PROMPT,
        queryText=(
            'SELECT Id, ActivityDate, Subject, Description FROM Task '
            f"WHERE WhatId = '{account_id}' ORDER BY ActivityDate ASC"
        ),
        loggedinUserId=os.environ['SF_USER_ID'],
    )

    openai = OpenAIClient(api_key=config.OPENAI_API_KEY, model=config.OPENAI_MODEL)
    salesforce = SalesforceClient(
        instance_url=config.SF_LOGIN_URL,
        access_token=access_token,
        api_version=config.SF_API_VERSION,
        max_retries=config.SF_MAX_RETRIES,
    )
    notifier = Notifier(timeout_seconds=config.CALLBACK_TIMEOUT_SECONDS)

    try:
        pipeline = SummaryPipeline(openai, salesforce, notifier, PipelineConfig.from_config())
        result = await pipeline.run(request, access_token)
        print(json.dumps(result.to_dict(), indent=2))
    finally:
        await salesforce.close()
        await notifier.close()
        await openai.close()


if __name__ == '__main__':
    asyncio.run(main())
