"""
Built-in rule catalog entries.

Rule texts are static; each entry names the registered check that
evaluates it. Rules produced by other layers (index advisor, EXPLAIN,
execution) use the ``external`` check.
"""

from __future__ import annotations

from queryaudit.models import RuleMetadata

BUILTIN_RULES: list[RuleMetadata] = [
    RuleMetadata(
        item="OK",
        severity="L0",
        summary="OK",
        content="OK",
        case="OK",
        check_id="ok",
    ),
    RuleMetadata(
        item="ALT.002",
        severity="L2",
        summary="Multiple ALTER request suggestions for the same table are combined into one",
        content=(
            "Each table structure change will have an impact on online services, even if it "
            "is possible to adjust through online tools, please try to reduce the number of "
            "operations by merging ALTER requests."
        ),
        case="ALTER TABLE tbl ADD COLUMN col int, ADD INDEX idx_col (`col`);",
        check_id="external",
    ),
    RuleMetadata(
        item="ARG.001",
        severity="L4",
        summary="It is not recommended to use the preceding wildcard search",
        content=(
            'For example, "%foo", if the query parameter has a wildcard in the preceding '
            "term, the existing index cannot be used."
        ),
        case="select c1,c2,c3 from tbl where name like '%foo'",
        check_id="prefix_like",
    ),
    RuleMetadata(
        item="ARG.002",
        severity="L1",
        summary="LIKE query without wildcards",
        content=(
            "LIKE query that does not contain wildcards may have a logic error, because it "
            "is logically the same as an equivalent query."
        ),
        case="select c1,c2,c3 from tbl where name like 'foo'",
        check_id="equal_like",
    ),
    RuleMetadata(
        item="ARG.003",
        severity="L4",
        summary="The parameter comparison contains implicit conversion, and the index cannot be used",
        content=(
            "Implicit type conversion has the risk of not hitting the index. In the case of "
            "high concurrency and large data volume, the consequences of not hitting the "
            "index are very serious."
        ),
        case="SELECT * FROM sakila.film WHERE length >= '60';",
        check_id="external",
    ),
    RuleMetadata(
        item="ARG.004",
        severity="L4",
        summary="IN (NULL)/NOT IN (NULL) is never true",
        content="The correct way is col IN ('val1','val2','val3') OR col IS NULL",
        case="SELECT * FROM tb WHERE col IN (NULL);",
        check_id="in_null",
    ),
    RuleMetadata(
        item="ARG.005",
        severity="L1",
        summary="IN should be used with caution, too many elements will cause a full table scan",
        content=(
            "For continuous values, don't use IN if you can use BETWEEN: select id from t "
            "where num between 1 and 3. When the IN list is too long the optimizer may fall "
            "back to a full table scan."
        ),
        case="select id from t where num in(1,2,3,4,5,6,7,8,9,10,11)",
        check_id="in_too_many",
    ),
    RuleMetadata(
        item="ARG.007",
        severity="L3",
        summary="Avoid using pattern matching",
        content=(
            "Performance is the biggest disadvantage of using pattern matching operators. "
            "Regular expressions may also return unexpected results. Consider a dedicated "
            "search engine or a FULLTEXT index instead."
        ),
        case="select c_id,c2,c3 from tbl where c2 regexp 'test'",
        check_id="pattern_matching",
    ),
    RuleMetadata(
        item="ARG.010",
        severity="L1",
        summary="Do not use hints, such as: sql_no_cache, force index, ignore key, straight join, etc.",
        content=(
            "hint is used to force SQL to execute according to a certain execution plan, but "
            "as the amount of data changes, we cannot guarantee that our original prediction "
            "is correct."
        ),
        case="SELECT * FROM t1 USE INDEX (i1) ORDER BY a;",
        check_id="hint",
    ),
    RuleMetadata(
        item="ARG.011",
        severity="L3",
        summary="Don't use negative query, such as: NOT IN/NOT LIKE",
        content=(
            "Please try not to use negative queries, which will cause a full table scan and "
            "have a greater impact on query performance."
        ),
        case="select id from t where num not in(1,2,3);",
        check_id="negation",
    ),
    RuleMetadata(
        item="CLA.001",
        severity="L4",
        summary="The outermost SELECT does not specify the WHERE condition",
        content=(
            "The SELECT statement has no WHERE clause, and may check more rows than expected "
            "(full table scan). If precision is not required for SELECT COUNT(*) type "
            "requests, it is recommended to use SHOW TABLE STATUS or EXPLAIN instead."
        ),
        case="select id from tbl",
        check_id="no_where_select",
    ),
    RuleMetadata(
        item="CLA.002",
        severity="L3",
        summary="ORDER BY RAND() is not recommended",
        content=(
            "ORDER BY RAND() is a very inefficient method of retrieving random rows from the "
            "result set, because it sorts the entire result and discards most of its data."
        ),
        case="select name from tbl where id <1000 order by rand(number)",
        check_id="order_by_rand",
    ),
    RuleMetadata(
        item="CLA.003",
        severity="L2",
        summary="It is not recommended to use LIMIT query with OFFSET",
        content=(
            "The complexity of using LIMIT and OFFSET to page the result set is O(n^2), and "
            "it will cause performance problems as the data increases. Using \"bookmark\" "
            "scanning method to achieve higher efficiency of paging."
        ),
        case="select c1,c2 from tbl where name=xx order by number limit 1 offset 2000",
        check_id="offset_limit",
    ),
    RuleMetadata(
        item="CLA.013",
        severity="L3",
        summary="The HAVING clause is not recommended",
        content=(
            "Rewrite the HAVING clause of the query as the query condition in the WHERE, and "
            "the index can be used during query processing."
        ),
        case=(
            "SELECT s.c_id,count(s.c_id) FROM s where c = test GROUP BY s.c_id "
            "HAVING s.c_id <> '1660' AND s.c_id <> '2' order by s.c_id"
        ),
        check_id="having",
    ),
    RuleMetadata(
        item="CLA.014",
        severity="L2",
        summary="It is recommended to use TRUNCATE instead of DELETE when deleting the entire table",
        content="It is recommended to use TRUNCATE instead of DELETE when deleting the entire table",
        case="delete from tbl",
        check_id="no_where_delete",
    ),
    RuleMetadata(
        item="CLA.015",
        severity="L4",
        summary="UPDATE does not specify the WHERE condition",
        content="UPDATE does not specify the WHERE condition is generally fatal, please think twice",
        case="update tbl set col=1",
        check_id="no_where_update",
    ),
    RuleMetadata(
        item="CLA.016",
        severity="L2",
        summary="Don't UPDATE the primary key",
        content=(
            "The primary key is the unique identifier of the record in the data table. It is "
            "not recommended to update the primary key column frequently. This will affect "
            "the metadata statistics and affect the normal query."
        ),
        case="update tbl set col=1",
        check_id="external",
    ),
    RuleMetadata(
        item="COL.001",
        severity="L1",
        summary="It is not recommended to use SELECT * type query",
        content=(
            "When the table structure changes, using the * wildcard to select all columns "
            "will cause the meaning and behavior of the query to change, which may cause the "
            "query to return more data."
        ),
        case="select * from tbl where id=1",
        check_id="select_star",
    ),
    RuleMetadata(
        item="COL.002",
        severity="L2",
        summary="INSERT/REPLACE does not specify the column name",
        content=(
            "When the table structure changes, if the INSERT or REPLACE request does not "
            "explicitly specify the column name, the result of the request will be different "
            'from what you expected; it is recommended to use "INSERT INTO tbl(col1, col2)'
            'VALUES ..." instead.'
        ),
        case="insert into tbl values(1,'name')",
        check_id="insert_columns",
    ),
    # Empty content on ERR rules means "no error"; checks fill in the message.
    RuleMetadata(
        item="ERR.000",
        severity="L8",
        summary="SQL syntax error",
        content="",
        case="",
        check_id="syntax_error",
    ),
    RuleMetadata(
        item="ERR.001",
        severity="L8",
        summary="Execution error",
        content="",
        case="",
        check_id="external",
    ),
    RuleMetadata(
        item="ERR.002",
        severity="L8",
        summary="EXPLAIN error",
        content="",
        case="",
        check_id="external",
    ),
    RuleMetadata(
        item="FUN.004",
        severity="L4",
        summary="It is not recommended to use the SYSDATE() function",
        content=(
            "SYSDATE() function may cause inconsistent master and slave data, please use "
            "NOW() function instead of SYSDATE()."
        ),
        case="SELECT SYSDATE();",
        check_id="sysdate",
    ),
    RuleMetadata(
        item="GRP.001",
        severity="L2",
        summary="It is not recommended to use GROUP BY for equivalent query columns",
        content=(
            "The columns in GROUP BY used the equivalent query in the previous WHERE "
            "condition, so it doesn't make much sense to perform GROUP BY on such columns."
        ),
        case="select film_id, title from film where release_year='2006' group by release_year",
        check_id="external",
    ),
    RuleMetadata(
        item="KWR.001",
        severity="L2",
        summary="SQL_CALC_FOUND_ROWS is inefficient",
        content=(
            "Because SQL_CALC_FOUND_ROWS can't scale well, it may cause performance problems; "
            "it is recommended that the business use other strategies to replace the "
            "counting function provided by SQL_CALC_FOUND_ROWS, such as: paging results "
            "display, etc."
        ),
        case="select SQL_CALC_FOUND_ROWS col from tbl where id>1000",
        check_id="calc_found_rows",
    ),
    RuleMetadata(
        item="RES.002",
        severity="L4",
        summary="LIMIT query without ORDER BY",
        content=(
            "LIMIT without ORDER BY will lead to non-deterministic results, depending on the "
            "query execution plan."
        ),
        case="select col1,col2 from tbl where name=xx limit 10",
        check_id="limit_without_order",
    ),
    RuleMetadata(
        item="RES.003",
        severity="L4",
        summary="UPDATE/DELETE operation uses LIMIT conditions",
        content=(
            "UPDATE/DELETE operation using LIMIT condition is as dangerous as not adding "
            "WHERE condition, it may cause inconsistency of master-slave data or "
            "interruption of slave database synchronization."
        ),
        case="UPDATE film SET length = 120 WHERE title ='abc' LIMIT 1;",
        check_id="dml_with_limit",
    ),
    RuleMetadata(
        item="RES.004",
        severity="L4",
        summary="UPDATE/DELETE operation specifies the ORDER BY condition",
        content="Do not specify ORDER BY conditions for UPDATE/DELETE operations.",
        case="UPDATE film SET length = 120 WHERE title ='abc' ORDER BY title",
        check_id="dml_with_order",
    ),
    RuleMetadata(
        item="RES.011",
        severity="L2",
        summary="The table of the update request operation contains the ON UPDATE CURRENT_TIMESTAMP field",
        content=(
            "The field defined as ON UPDATE CURRENT_TIMESTAMP will be modified when other "
            "fields in the table are updated. If you don't want to modify the update time of "
            "the field, set it to itself explicitly."
        ),
        case="UPDATE category SET name='ActioN', last_update=last_update WHERE category_id=1",
        check_id="external",
    ),
    RuleMetadata(
        item="SEC.001",
        severity="L0",
        summary="Please use TRUNCATE operation with caution",
        content=(
            "TRUNCATE TABLE cannot return the exact number of deleted rows and resets "
            "AUTO_INCREMENT. It also takes a metadata lock, so truncating many tables at "
            "once affects every request on the instance."
        ),
        case="TRUNCATE TABLE tbl_name",
        check_id="truncate",
    ),
    RuleMetadata(
        item="SEC.003",
        severity="L0",
        summary="Pay attention to backup when using DELETE/DROP/TRUNCATE and other operations",
        content="It is necessary to back up data before performing high-risk operations.",
        case="delete from table where col ='condition'",
        check_id="data_drop",
    ),
    RuleMetadata(
        item="STA.001",
        severity="L0",
        summary="'!=' operator is non-standard",
        content='"<>" is the inequality operator in standard SQL.',
        case="select col1,col2 from tbl where type!=0",
        check_id="non_standard_ineq",
    ),
    RuleMetadata(
        item="SUB.001",
        severity="L4",
        summary="MySQL has a poor optimization effect on subqueries",
        content=(
            "MySQL executes a subquery with each row in the external query as a dependent "
            "subquery. This is a common cause of severe performance problems. It is "
            "recommended to rewrite this type of query as JOIN or LEFT OUTER JOIN."
        ),
        case="select col1,col2,col3 from table1 where col2 in(select col from table2)",
        check_id="in_subquery",
    ),
    RuleMetadata(
        item="SUB.002",
        severity="L2",
        summary="If you don't care about duplication, it is recommended to use UNION ALL instead of UNION",
        content=(
            "Unlike UNION which removes duplicates, UNION ALL allows duplicate tuples. If "
            "you don't care about repeated tuples, then using UNION ALL will be a faster "
            "option."
        ),
        case="select id from t1 union select id from t2",
        check_id="union_distinct",
    ),
]
