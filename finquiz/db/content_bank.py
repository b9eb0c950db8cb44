"""Seed content: finance modules, lessons and questions.

Each question is (prompt, choices, correct_index, explanation). Questions
whose choices are exactly True/False are stored as true_false.
"""

FINANCE_MODULES = [
    {
        "id": "accounting-basics",
        "title": "Accounting Basics",
        "subtitle": "The language of business",
        "lessons": [
            {
                "id": "accounting-basics-1",
                "title": "The Three Statements",
                "xp_reward": 100,
                "questions": [
                    ("Which statement shows a company's financial position at a single point in time?",
                     ["Balance Sheet", "Income Statement", "Cash Flow Statement", "Statement of Retained Earnings"], 0,
                     "The balance sheet is a snapshot of assets, liabilities and equity on one date."),
                    ("Net income flows from the income statement into which balance sheet line?",
                     ["Retained Earnings", "Accounts Payable", "Goodwill", "Inventory"], 0,
                     "Net income less dividends accumulates in retained earnings."),
                    ("The cash flow statement starts with net income under the indirect method.",
                     ["True", "False"], 0,
                     "The indirect method reconciles net income to cash from operations."),
                    ("Assets equal liabilities plus what?",
                     ["Shareholders' Equity", "Revenue", "Net Income", "Cash"], 0,
                     "The accounting equation: Assets = Liabilities + Equity."),
                ],
            },
            {
                "id": "accounting-basics-2",
                "title": "Statement Linkages",
                "xp_reward": 120,
                "questions": [
                    ("Increasing depreciation has what immediate effect on cash flow?",
                     ["Increases cash flow", "Decreases cash flow", "No effect"], 0,
                     "The non-cash expense lowers taxable income, so taxes paid fall and cash from operations rises."),
                    ("An increase in accounts receivable is a use of cash.",
                     ["True", "False"], 0,
                     "Revenue was booked but the cash has not been collected yet."),
                    ("Capital expenditures appear in which section of the cash flow statement?",
                     ["Investing Activities", "Operating Activities", "Financing Activities", "Supplemental Disclosures"], 0,
                     "Purchases of long-lived assets are investing outflows."),
                    ("Issuing new debt affects which cash flow section?",
                     ["Financing Activities", "Operating Activities", "Investing Activities", "None"], 0,
                     "Raising or repaying debt is a financing activity."),
                ],
            },
            {
                "id": "accounting-basics-3",
                "title": "Working Capital",
                "xp_reward": 140,
                "questions": [
                    ("Net working capital is usually defined as current assets minus what?",
                     ["Current Liabilities", "Total Liabilities", "Long-term Debt", "Equity"], 0,
                     "NWC = current assets - current liabilities."),
                    ("A rise in inventory increases free cash flow.",
                     ["True", "False"], 1,
                     "Building inventory ties up cash, reducing free cash flow."),
                    ("Days sales outstanding measures the average time to do what?",
                     ["Collect receivables", "Pay suppliers", "Sell inventory", "Close the books"], 0,
                     "DSO = receivables / revenue * days in period."),
                    ("Deferred revenue is recorded as which type of account?",
                     ["Liability", "Asset", "Equity", "Expense"], 0,
                     "Cash received before the service is delivered is owed to the customer."),
                ],
            },
            {
                "id": "accounting-basics-4",
                "title": "Accruals and Adjustments",
                "xp_reward": 160,
                "questions": [
                    ("Under accrual accounting, revenue is recognised when it is what?",
                     ["Earned", "Collected", "Invoiced", "Forecast"], 0,
                     "Recognition follows delivery of the good or service, not cash receipt."),
                    ("Stock-based compensation is added back in cash from operations.",
                     ["True", "False"], 0,
                     "It is a non-cash expense."),
                    ("An impairment of goodwill reduces which figure?",
                     ["Net Income", "Cash", "Revenue", "Accounts Payable"], 0,
                     "Impairment is a non-cash charge on the income statement."),
                    ("Prepaid expenses are classified as what?",
                     ["Current Assets", "Current Liabilities", "Equity", "Revenue"], 0,
                     "They are payments for benefits still to be received."),
                ],
            },
        ],
    },
    {
        "id": "dcf-fundamentals",
        "title": "DCF Fundamentals",
        "subtitle": "Master valuation basics",
        "lessons": [
            {
                "id": "dcf-fundamentals-1",
                "title": "Basics",
                "xp_reward": 100,
                "questions": [
                    ("What does DCF stand for?",
                     ["Discounted Cash Flow", "Deferred Cash Fund", "Distributed Capital Financing", "Debt Coverage Formula"], 0,
                     "DCF values a business by projecting future free cash flows and discounting them back to present value."),
                    ("Which rate is commonly used as the discount rate in a DCF?",
                     ["WACC", "Net Margin", "EBITDA", "Beta"], 0,
                     "Weighted Average Cost of Capital reflects the opportunity cost of capital to all providers."),
                    ("A higher discount rate increases present value.",
                     ["True", "False"], 1,
                     "Future cash flows are worth less today when discounted at a higher rate."),
                    ("Unlevered free cash flow is available to whom?",
                     ["All capital providers", "Equity holders only", "Lenders only", "Management"], 0,
                     "It is calculated before interest payments."),
                ],
            },
            {
                "id": "dcf-fundamentals-2",
                "title": "Cost of Capital",
                "xp_reward": 120,
                "questions": [
                    ("Which model is most often used to estimate the cost of equity?",
                     ["CAPM", "Gordon Growth", "Black-Scholes", "DuPont"], 0,
                     "CAPM: risk-free rate + beta * equity risk premium."),
                    ("Interest is tax-deductible, so the cost of debt in WACC is after-tax.",
                     ["True", "False"], 0,
                     "After-tax cost of debt = pre-tax rate * (1 - tax rate)."),
                    ("A beta greater than 1 means the stock is what relative to the market?",
                     ["More volatile", "Less volatile", "Uncorrelated", "Risk-free"], 0,
                     "Beta measures sensitivity to market movements."),
                    ("WACC weights should be based on what values?",
                     ["Market values", "Book values", "Par values", "Historical cost"], 0,
                     "Market values reflect the current cost of raising capital."),
                ],
            },
            {
                "id": "dcf-fundamentals-3",
                "title": "Terminal Value",
                "xp_reward": 140,
                "questions": [
                    ("Which two methods are standard for terminal value?",
                     ["Perpetuity growth and exit multiple", "NPV and IRR", "LIFO and FIFO", "Accrual and cash"], 0,
                     "Gordon growth and exit multiples are the common approaches."),
                    ("The perpetuity growth rate should not exceed long-run economic growth.",
                     ["True", "False"], 0,
                     "No company can outgrow the economy forever."),
                    ("Terminal value often represents what share of total DCF value?",
                     ["More than half", "Under 10%", "Exactly 25%", "None"], 0,
                     "Most value typically sits beyond the explicit forecast period."),
                    ("Terminal value must be discounted back from which point?",
                     ["End of the forecast period", "Today", "Year one", "The exit year plus one"], 0,
                     "It is a value as of the final projection year."),
                ],
            },
            {
                "id": "dcf-fundamentals-4",
                "title": "Enterprise to Equity Value",
                "xp_reward": 160,
                "questions": [
                    ("To move from enterprise value to equity value, you subtract what?",
                     ["Net debt", "Revenue", "Capex", "Depreciation"], 0,
                     "Equity value = enterprise value - debt + cash (plus other adjustments)."),
                    ("Cash is added when bridging from enterprise value to equity value.",
                     ["True", "False"], 0,
                     "Cash belongs to equity holders."),
                    ("Implied share price equals equity value divided by what?",
                     ["Diluted shares outstanding", "Basic EPS", "Market cap", "Float"], 0,
                     "Use the diluted share count, including options and convertibles."),
                    ("Minority interest is treated how in the bridge?",
                     ["Subtracted like debt", "Added like cash", "Ignored", "Multiplied by beta"], 0,
                     "It is a claim on consolidated cash flows not owned by parent shareholders."),
                ],
            },
        ],
    },
]
"""Static finance content bank seeded on first startup."""
